import pytest

import firebase_client
from firebase_client import init_firebase


@pytest.fixture
def admin(monkeypatch):
    calls = {"certificates": [], "initialized": [], "app": None}

    def get_app():
        if calls["app"] is None:
            raise ValueError("The default Firebase app does not exist.")
        return calls["app"]

    def initialize_app(cred, options):
        calls["initialized"].append((cred, options))
        calls["app"] = object()
        return calls["app"]

    def certificate(info):
        calls["certificates"].append(info)
        return ("cert", info["project_id"])

    monkeypatch.setattr(firebase_client.firebase_admin, "get_app", get_app)
    monkeypatch.setattr(firebase_client.firebase_admin, "initialize_app", initialize_app)
    monkeypatch.setattr(firebase_client.credentials, "Certificate", certificate)
    monkeypatch.setattr(firebase_client.firestore, "client", lambda: "firestore-client")
    return calls


@pytest.mark.parametrize("missing", ["project_id", "client_email", "private_key"])
def test_missing_credential_disables_firebase(admin, capsys, missing):
    values = {"project_id": "planner", "client_email": "svc@planner.iam", "private_key": "KEY"}
    values[missing] = ""
    assert init_firebase(**values) == (None, None)
    assert admin["initialized"] == []
    assert "[WARN] Firebase Admin not initialized" in capsys.readouterr().err


def test_initializes_once(admin):
    db, auth = init_firebase("planner", "svc@planner.iam", "-----BEGIN\\nKEY\\n-----END")
    assert db == "firestore-client"
    assert auth is firebase_client.firebase_auth
    assert len(admin["initialized"]) == 1
    cred, options = admin["initialized"][0]
    assert options == {"projectId": "planner"}
    info = admin["certificates"][0]
    assert info["type"] == "service_account"
    assert info["private_key"] == "-----BEGIN\nKEY\n-----END"

    init_firebase("planner", "svc@planner.iam", "KEY")
    assert len(admin["initialized"]) == 1
