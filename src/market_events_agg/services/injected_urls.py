"""Registry of user-supplied Gamma URLs merged into the trending feed."""
import hashlib
import logging
import threading
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         InvalidRequestError)

logger = logging.getLogger(__name__)


def url_id(url: str) -> str:
    """Deterministic id for a URL (sha256 hex prefix)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:32]


class InjectedUrl(BaseModel):
    """A registered URL, split into the path and params the client needs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    url: str
    path: str
    params: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InjectedUrlRegistry:
    """In-memory set of injected URLs, keyed by url_id().

    Owned by the application container and handed to the services that need
    it. Contents do not survive a restart.
    """

    def __init__(self, api_base_url: str = "https://gamma-api.polymarket.com") -> None:
        self._api_host = urlsplit(api_base_url).hostname or ""
        self._urls: dict[str, InjectedUrl] = {}
        self._lock = threading.Lock()

    def _parse(self, url: str) -> tuple[str, dict[str, str]]:
        parts = urlsplit(url.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidRequestError(
                ErrorCode.VALIDATION_ERROR, f"Invalid URL format: {url}"
            )
        host = parts.hostname or ""
        if "polymarket.com" not in host and host != self._api_host:
            logger.warning("URL %s does not look like a Polymarket API URL", url)
        return parts.path or "/", dict(parse_qsl(parts.query, keep_blank_values=True))

    def add(self, url: str) -> InjectedUrl:
        """Register url; adding an already registered URL returns the existing entry.

        Raises:
            InvalidRequestError: url is not an absolute http(s) URL.
        """
        key = url_id(url)
        with self._lock:
            existing = self._urls.get(key)
            if existing is not None:
                logger.info("URL %s already registered as %s", url, key)
                return existing
            path, params = self._parse(url)
            entry = InjectedUrl(id=key, url=url, path=path, params=params)
            self._urls[key] = entry
        logger.info("Injected URL %s added (path=%s, params=%s)", key, path, params)
        return entry

    def _resolve(self, identifier: str) -> str | None:
        if identifier in self._urls:
            return identifier
        key = url_id(identifier)
        return key if key in self._urls else None

    def remove(self, identifier: str) -> bool:
        """Remove by id or by the URL itself. False when nothing matched."""
        with self._lock:
            key = self._resolve(identifier)
            if key is None:
                logger.warning("Injected URL %s not found for removal", identifier)
                return False
            del self._urls[key]
        logger.info("Injected URL %s removed", key)
        return True

    def list(self) -> list[InjectedUrl]:
        with self._lock:
            return list(self._urls.values())

    def get(self, id_: str) -> InjectedUrl | None:
        with self._lock:
            return self._urls.get(id_)

    def contains(self, identifier: str) -> bool:
        with self._lock:
            return self._resolve(identifier) is not None

    def clear(self) -> int:
        """Remove everything; returns how many URLs were dropped."""
        with self._lock:
            count = len(self._urls)
            self._urls.clear()
        logger.info("Cleared %d injected URLs", count)
        return count

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._urls)
