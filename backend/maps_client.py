"""
Google Maps Geocoding / Directions client.

Calls the public REST endpoints with `requests` and reshapes the first
result into the compact payloads the frontend and the walking-time
validator consume.
"""

import re
import sys

import requests

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
CAMPUS_SUFFIX = ", Ithaca, NY"
DEFAULT_TIMEOUT_SECONDS = 10

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_EMPTY_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


class MapsError(Exception):
    """Base class for maps failures; str(exc) is safe to show to clients."""


class MapsNotConfigured(MapsError):
    pass


class MapsNotFound(MapsError):
    pass


class MapsUpstreamError(MapsError):
    pass


def format_point(point) -> str:
    """Directions accept free text or 'lat,lng'."""
    if isinstance(point, dict):
        return f"{point['lat']},{point['lng']}"
    return str(point)


def strip_html(text: str) -> str:
    return _HTML_TAG_RE.sub("", text or "")


class MapsClient:
    def __init__(
        self,
        api_key: str | None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key or None
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    def _get(self, url: str, params: dict) -> dict:
        if not self.configured:
            raise MapsNotConfigured("Google Maps API key not configured")
        try:
            response = self.session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            print(f"[maps] request to {url} failed: {exc}", file=sys.stderr)
            raise MapsUpstreamError(str(exc)) from exc
        status = payload.get("status", "OK")
        if status != "OK" and status not in _EMPTY_STATUSES:
            message = payload.get("error_message") or status
            print(f"[maps] upstream status {status}: {message}", file=sys.stderr)
            raise MapsUpstreamError(message)
        return payload

    def geocode(self, address: str) -> dict:
        """Resolve a campus building/address to {lat, lng, formattedAddress}."""
        payload = self._get(GEOCODE_URL, {"address": f"{address}{CAMPUS_SUFFIX}"})
        results = payload.get("results") or []
        if not results:
            raise MapsNotFound("Address not found")
        first = results[0]
        location = first["geometry"]["location"]
        return {
            "lat": location["lat"],
            "lng": location["lng"],
            "formattedAddress": first.get("formatted_address", ""),
        }

    def directions(self, origin, destination) -> dict:
        """
        Walking route between two places. distance is metres, duration seconds,
        polyline the encoded overview path.
        """
        payload = self._get(DIRECTIONS_URL, {
            "origin": format_point(origin),
            "destination": format_point(destination),
            "mode": "walking",
        })
        routes = payload.get("routes") or []
        if not routes:
            raise MapsNotFound("No route found")
        route = routes[0]
        leg = route["legs"][0]
        return {
            "distance": leg["distance"]["value"],
            "duration": leg["duration"]["value"],
            "polyline": (route.get("overview_polyline") or {}).get("points", ""),
            "steps": [
                {
                    "distance": step["distance"]["value"],
                    "duration": step["duration"]["value"],
                    "instruction": strip_html(step.get("html_instructions", "")),
                    "startLocation": {
                        "lat": step["start_location"]["lat"],
                        "lng": step["start_location"]["lng"],
                    },
                    "endLocation": {
                        "lat": step["end_location"]["lat"],
                        "lng": step["end_location"]["lng"],
                    },
                }
                for step in leg.get("steps", [])
            ],
        }
