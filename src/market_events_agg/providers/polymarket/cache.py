"""In-process TTL cache for serialized event pages."""
import fnmatch
import threading
import time
from collections.abc import Callable


class EventsCache:
    """Key/value cache with per-key expiry.

    Mirrors the small slice of the Redis API the services use (get, set with
    TTL, delete, glob keys) so it can be swapped for a Redis-backed
    CacheBackend without touching callers. Expired entries are dropped lazily
    on access.
    """

    def __init__(
        self,
        default_ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize empty cache.

        Args:
            default_ttl_seconds: TTL used when set() is called without one;
                None keeps entries until deleted.
            clock: Monotonic time source, injectable for tests.
        """
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}  # key -> (value, expires_at)
        self._lock = threading.Lock()

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def get(self, key: str) -> str | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._expired(expires_at):
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store value under key for ttl_seconds (or the default TTL)."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self, pattern: str = "*") -> list[str]:
        """Live keys matching a Redis-style glob pattern."""
        with self._lock:
            for key in [k for k, (_, exp) in self._entries.items() if self._expired(exp)]:
                del self._entries[key]
            return [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]

    def clear(self) -> None:
        """Clear all cached data."""
        with self._lock:
            self._entries.clear()
