"""Shared fixtures: raw Gamma payload factories and a scripted upstream client."""
from typing import Any

import pytest

from market_events_agg.providers.polymarket.cache import EventsCache
from market_events_agg.services import EventsService, InjectedUrlRegistry


def _market(**overrides: Any) -> dict[str, Any]:
    market = {
        "id": "m1",
        "question": "Will it happen?",
        "conditionId": "0xabc",
        "slug": "will-it-happen",
        "outcomes": '["Yes", "No"]',
        "outcomePrices": '["0.85", "0.15"]',
        "clobTokenIds": '["1111", "2222"]',
        "volume": "1000",
        "liquidity": "500",
        "active": True,
        "closed": False,
        "archived": False,
        "updatedAt": "2024-05-01T12:00:00Z",
    }
    market.update(overrides)
    return market


def _event(**overrides: Any) -> dict[str, Any]:
    event = {
        "id": "e1",
        "title": "Event one",
        "slug": "event-one",
        "active": True,
        "closed": False,
        "archived": False,
        "volume24hr": 100.0,
        "markets": [_market()],
        "tags": [{"id": "2", "label": "Politics", "slug": "politics"}],
        "updatedAt": "2024-05-01T12:00:00Z",
    }
    event.update(overrides)
    return event


@pytest.fixture
def market_factory():
    """Build a raw Gamma market dict; keyword args override fields."""
    return _market


@pytest.fixture
def event_factory():
    """Build a raw Gamma event dict; keyword args override fields."""
    return _event


class FakeClient:
    """UpstreamClient double: canned payloads (or exceptions) per path."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.closed = False

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((path, params))
        response = self.responses.get(path, {"data": []})
        if callable(response):
            response = response(params)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    def paths(self) -> list[str]:
        return [path for path, _ in self.calls]


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def cache():
    return EventsCache(default_ttl_seconds=30)


@pytest.fixture
def registry():
    return InjectedUrlRegistry()


@pytest.fixture
def events_service(fake_client, cache, registry):
    return EventsService(fake_client, cache, registry, cache_ttl_seconds=30)
