"""Protocols for the collaborators around the transformation core."""
from typing import Any, Protocol


class CacheBackend(Protocol):
    """Key/value store with per-key TTL (Redis-shaped).

    Values are serialized JSON strings. Callers treat a miss and a backend
    error the same way: fall through to fresh computation.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, pattern: str) -> list[str]: ...


class UpstreamClient(Protocol):
    """Protocol for the Gamma API client.

    get() returns already-deserialized JSON and raises AppError subclasses
    for every network, status or payload failure.
    """

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Fetch path with query params; result has "data" and optional "pagination"."""
        ...

    async def close(self) -> None: ...
