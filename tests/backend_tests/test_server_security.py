"""
Production hardening tests.

Covers:
- GET /api/health returns 200 with expected JSON
- Security headers present on all responses
- Rate limiting on the maps proxy: request past the per-minute budget returns 429
- Unknown /api/* paths and unexpected errors return JSON errors
"""

import pytest
import server
from fake_firestore import FakeAuth, FakeFirestore


class FakeMaps:
    configured = True

    def geocode(self, address):
        return {"lat": 42.4449, "lng": -76.4813, "formattedAddress": f"{address}, Ithaca, NY"}

    def directions(self, origin, destination):
        return {"distance": 100, "duration": 80, "polyline": "", "steps": []}


@pytest.fixture(scope="module")
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


@pytest.fixture
def fake_maps(monkeypatch):
    monkeypatch.setattr(server, "_maps", FakeMaps())


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200

    def test_health_response_body(self, client, monkeypatch):
        monkeypatch.setattr(server, "_db", FakeFirestore())
        monkeypatch.setattr(server, "_auth", FakeAuth())
        data = client.get("/api/health").get_json()
        assert data["status"] == "ok"
        assert "version" in data
        assert data["firebase_ready"] is True
        assert "maps_ready" in data
        assert "requirements_loaded" in data

    def test_health_reports_missing_firebase(self, client, monkeypatch):
        monkeypatch.setattr(server, "_db", None)
        monkeypatch.setattr(server, "_auth", None)
        assert client.get("/api/health").get_json()["firebase_ready"] is False


class TestSecurityHeaders:
    def test_security_headers_on_health(self, client):
        resp = client.get("/api/health")
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("Referrer-Policy") == "same-origin"

    def test_security_headers_on_errors(self, client):
        resp = client.get("/api/cornell/search")
        assert resp.status_code == 400
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("Referrer-Policy") == "same-origin"

    def test_cors_header_on_api(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers.get("Access-Control-Allow-Origin") in {"*", "http://localhost:5173"}


class TestRateLimiting:
    """Maps proxy budget is _RATE_LIMIT_MAX req/min per IP. TESTING mode bypasses it."""

    def test_rate_limit_enforced_in_non_testing_mode(self, fake_maps):
        server.app.config["TESTING"] = False
        try:
            with server.app.test_client() as c:
                test_ip = "10.99.88.77"
                with server._rate_limit_lock:
                    server._rate_limit_tracker[test_ip] = []

                statuses = []
                for _ in range(server._RATE_LIMIT_MAX + 1):
                    resp = c.post(
                        "/api/geocode",
                        json={"address": "Gates Hall"},
                        environ_base={"REMOTE_ADDR": test_ip},
                    )
                    statuses.append(resp.status_code)

                assert all(s == 200 for s in statuses[:server._RATE_LIMIT_MAX]), statuses
                assert statuses[-1] == 429
                assert resp.get_json() == {"error": "Too many requests. Please wait before retrying."}
        finally:
            server.app.config["TESTING"] = True
            server._cache.clear()

    def test_rate_limit_bypassed_in_testing_mode(self, client, fake_maps):
        test_ip = "10.99.00.01"
        with server._rate_limit_lock:
            server._rate_limit_tracker[test_ip] = []

        for _ in range(server._RATE_LIMIT_MAX + 2):
            resp = client.post(
                "/api/geocode",
                json={"address": "Gates Hall"},
                environ_base={"REMOTE_ADDR": test_ip},
            )
            assert resp.status_code == 200

    def test_forwarded_for_is_used_as_client_ip(self, fake_maps):
        server.app.config["TESTING"] = False
        try:
            with server.app.test_client() as c:
                with server._rate_limit_lock:
                    server._rate_limit_tracker["203.0.113.9"] = []
                c.post(
                    "/api/geocode",
                    json={"address": "Olin Library"},
                    headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
                )
                assert len(server._rate_limit_tracker["203.0.113.9"]) == 1
        finally:
            server.app.config["TESTING"] = True
            server._cache.clear()


class TestErrorResponses:
    def test_unknown_api_path(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "/api/does-not-exist not found"}

    def test_unexpected_error_returns_json_500(self, client, monkeypatch):
        def boom(_args):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(server, "validate_catalog_search", boom)
        resp = client.get("/api/cornell/search?q=x")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "An unexpected server error occurred."}

    def test_wrong_method_on_known_path_is_405(self, client):
        resp = client.post("/api/health")
        assert resp.status_code == 405
        assert resp.headers.get("Allow") == "GET"
        assert resp.get_json() == {"error": "POST not allowed on /api/health"}

    def test_wrong_method_on_parameterised_path_is_405(self, client):
        resp = client.post("/api/schedules/abc123")
        assert resp.status_code == 405
        assert resp.headers.get("Allow") == "GET"

    def test_unknown_path_any_method_is_404(self, client):
        resp = client.delete("/api/does-not-exist")
        assert resp.status_code == 404
