"""
Cornell Class Roster API client.

Thin wrapper over https://classes.cornell.edu/api/2.0 that returns the
upstream JSON unchanged. All upstream calls go through one process-wide
throttle so consecutive requests are spaced at least `min_interval`
seconds apart; early callers wait rather than being rejected.
"""

import sys
import threading
import time

import requests

CORNELL_API_BASE = "https://classes.cornell.edu/api/2.0"
DEFAULT_MIN_INTERVAL_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 10


class CornellApiError(Exception):
    """Raised when the roster API cannot be reached or returns garbage."""


class SerialThrottle:
    """Spaces calls at least `min_interval` seconds apart, in arrival order."""

    def __init__(self, min_interval: float, clock=time.monotonic, sleep=time.sleep):
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call = None

    def wait(self) -> float:
        """Block until the next call is allowed; returns seconds slept."""
        with self._lock:
            waited = 0.0
            now = self._clock()
            if self._last_call is not None:
                elapsed = now - self._last_call
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    self._sleep(waited)
            self._last_call = self._clock()
            return waited


class CornellClient:
    def __init__(
        self,
        base_url: str = CORNELL_API_BASE,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.throttle = SerialThrottle(min_interval)
        self.session = session or requests.Session()

    def _get(self, path: str, params: dict) -> dict:
        self.throttle.wait()
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            print(f"[cornell] GET {path} failed: {exc}", file=sys.stderr)
            raise CornellApiError(str(exc)) from exc

    def search_classes(self, roster: str, q: str | None = None, subject: str | None = None) -> dict:
        params = {"roster": roster}
        if q:
            params["q"] = q
        if subject:
            params["subject"] = subject
        return self._get("/search/classes.json", params)

    def get_subjects(self, roster: str) -> dict:
        return self._get("/config/subjects.json", {"roster": roster})


def find_class_in(payload: dict | None, crse_id) -> dict | None:
    """Pick a class out of a /search/classes.json payload by crseId."""
    classes = ((payload or {}).get("data") or {}).get("classes") or []
    wanted = str(crse_id)
    for cls in classes:
        if str(cls.get("crseId")) == wanted:
            return cls
    return None
