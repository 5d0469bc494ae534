import threading
import time
from collections import OrderedDict

DEFAULT_TTL_SECONDS = 5 * 60


class TtlCache:
    """Thread-safe in-memory cache for JSON-serializable upstream responses."""

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS, clock=time.time):
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                return None
            if self._clock() > entry["expires_at"]:
                self._items.pop(key, None)
                return None
            return entry["data"]

    def set(self, key: str, data, ttl: float | None = None) -> None:
        now = self._clock()
        with self._lock:
            self._items[key] = {
                "data": data,
                "timestamp": now,
                "expires_at": now + (self.default_ttl if ttl is None else ttl),
            }

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._items.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def clear_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._items.items() if now > e["expires_at"]]
            for key in expired:
                del self._items[key]
        return len(expired)

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._items), "keys": list(self._items.keys())}


def cached(cache: TtlCache | None, key: str, fetcher, ttl: float | None = None):
    """Return cache[key] when fresh, else call fetcher() and store its result.

    Passing cache=None bypasses caching entirely (used in TESTING mode).
    """
    if cache is not None:
        hit = cache.get(key)
        if hit is not None:
            return hit
    data = fetcher()
    if cache is not None:
        cache.set(key, data, ttl)
    return data


# ── Cache keys ────────────────────────────────────────────────────────────────
def cornell_search_key(query: str, roster: str) -> str:
    return f"cornell:search:{roster}:{query}"


def cornell_subject_key(subject: str, roster: str) -> str:
    return f"cornell:subject:{roster}:{subject}"


def cornell_subjects_key(roster: str) -> str:
    return f"cornell:subjects:{roster}"


def geocode_key(address: str) -> str:
    return f"geocode:{str(address or '').lower().strip()}"


def _point_label(point) -> str:
    if isinstance(point, dict):
        return f"{point.get('lat')},{point.get('lng')}"
    return str(point or "").lower().strip()


def directions_key(origin, destination) -> str:
    """origin/destination are either {lat, lng} dicts or free-text places."""
    return f"directions:{_point_label(origin)}:{_point_label(destination)}"
