"""Application settings read from environment variables."""
import logging
import os
from dataclasses import dataclass, field

_DEFAULT_API_BASE_URL = "https://gamma-api.polymarket.com"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _default_polling_intervals() -> dict[str, int]:
    return {
        "trending": _env_int("POLYMARKET_POLLING_INTERVAL_TRENDING", 30),
        "politics": _env_int("POLYMARKET_POLLING_INTERVAL_POLITICS", 45),
        "crypto": _env_int("POLYMARKET_POLLING_INTERVAL_CRYPTO", 20),
        "finance": _env_int("POLYMARKET_POLLING_INTERVAL_FINANCE", 60),
        "sports": _env_int("POLYMARKET_POLLING_INTERVAL_SPORTS", 60),
    }


@dataclass(frozen=True)
class Settings:
    """Runtime configuration. Defaults match production; override via env."""

    api_base_url: str = field(
        default_factory=lambda: os.getenv("POLYMARKET_API_BASE_URL", _DEFAULT_API_BASE_URL)
    )
    request_timeout_seconds: float = field(
        default_factory=lambda: _env_float("POLYMARKET_TIMEOUT_SECONDS", 10.0)
    )
    cache_ttl_seconds: int = field(
        default_factory=lambda: _env_int("POLYMARKET_CACHE_TTL", 30)
    )
    polling_enabled: bool = field(
        default_factory=lambda: _env_bool("POLYMARKET_POLLING_ENABLED", True)
    )
    polling_intervals: dict[str, int] = field(default_factory=_default_polling_intervals)
    polling_endpoint_interval: int = field(
        default_factory=lambda: _env_int("POLYMARKET_POLLING_ENDPOINT_INTERVAL", 15)
    )
    winner_price_threshold: float = field(
        default_factory=lambda: _env_float("WINNER_PRICE_THRESHOLD", 99.0)
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8001))

    @property
    def log_level_num(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once at application entry."""
    logging.basicConfig(level=settings.log_level_num, format=LOG_FORMAT)
