"""API tests: routes wired through the real container with a scripted upstream."""
import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from market_events_agg.config import Settings
from market_events_agg.container import init_container
from market_events_agg.main import create_app
from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         PolymarketError)
from market_events_agg.providers.polymarket.queries import (EVENTS_PATH,
                                                            SEARCH_PATH)
from market_events_agg.services.clarifications import CLARIFICATIONS_PATH

INJECTED = "https://gamma-api.polymarket.com/events/slug/special"


@pytest.fixture
def container(fake_client):
    container = init_container(Settings(polling_enabled=False))
    container.client.override(providers.Object(fake_client))
    return container


@pytest.fixture
def api(container):
    return TestClient(create_app(container))


def test_health(api):
    response = api.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_api_info(api):
    assert api.get("/api").json()["documentation"] == "/docs"


def test_get_events(api, fake_client, event_factory):
    fake_client.responses[EVENTS_PATH] = {"data": [event_factory()]}

    response = api.get("/api/polymarket/events", params={"category": "politics"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    event = body["data"]["events"][0]
    assert event["id"] == "e1"
    assert event["groupedOutcomes"][0]["probability"] == 85
    assert event["isBinaryOutcome"] is True
    assert "isMultiOutcome" not in event
    assert body["data"]["pagination"] == {
        "hasMore": False, "totalResults": 1, "offset": 0, "limit": 20
    }


@pytest.mark.parametrize(
    "params,code",
    [
        ({"limit": 10}, "INVALID_LIMIT"),
        ({"limit": 51}, "INVALID_LIMIT"),
        ({"offset": -1}, "INVALID_OFFSET"),
        ({"category": "weather"}, "INVALID_CATEGORY"),
        ({"order": "random"}, "INVALID_ORDER"),
    ],
)
def test_get_events_rejects_bad_params(api, fake_client, params, code):
    response = api.get("/api/polymarket/events", params=params)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == code
    assert fake_client.calls == []


def test_upstream_failure_renders_error(api, fake_client):
    fake_client.responses[EVENTS_PATH] = PolymarketError(
        ErrorCode.POLYMARKET_RATE_LIMIT, "429 from upstream"
    )

    response = api.get("/api/polymarket/events")

    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "error": {
            "code": "POLYMARKET_RATE_LIMIT",
            "message": "Too many requests. Please try again in a moment.",
            "statusCode": 429,
        },
    }


def test_get_event_by_id(api, fake_client, event_factory):
    fake_client.responses[EVENTS_PATH] = {"data": [event_factory(id="42")]}
    api.get("/api/polymarket/events")

    assert api.get("/api/polymarket/events/42").json()["data"]["id"] == "42"

    missing = api.get("/api/polymarket/events/nope")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


def test_refresh(api, fake_client, event_factory):
    fake_client.responses[EVENTS_PATH] = {"data": [event_factory()]}
    api.get("/api/polymarket/events", params={"category": "sports"})

    response = api.post("/api/polymarket/refresh/sports")

    assert response.json()["data"] == {"category": "sports", "keysDeleted": 1}
    api.get("/api/polymarket/events", params={"category": "sports"})
    assert fake_client.paths().count(EVENTS_PATH) == 2


def test_refresh_unknown_category(api):
    response = api.post("/api/polymarket/refresh/weather")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CATEGORY"


def test_search(api, fake_client, event_factory):
    fake_client.responses[SEARCH_PATH] = {
        "events": [event_factory(id="hit")],
        "pagination": {"hasMore": False, "totalResults": 1},
    }

    body = api.get("/api/polymarket/search", params={"q": "election"}).json()

    assert [e["id"] for e in body["data"]["events"]] == ["hit"]
    assert "message" not in body


def test_search_empty_result_has_message(api):
    body = api.get("/api/polymarket/search", params={"q": "nothing"}).json()
    assert body["data"]["events"] == []
    assert body["message"] == "No markets available for the selected filters"


def test_search_requires_criteria(api):
    response = api.get("/api/polymarket/search")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_search_param_validation(api):
    response = api.get("/api/polymarket/search", params={"q": "x", "limit_per_type": 500})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_injected_urls_lifecycle(api, fake_client, event_factory):
    added = api.post("/api/polymarket/injected-urls", json={"url": INJECTED}).json()["data"]
    assert added["path"] == "/events/slug/special"

    listed = api.get("/api/polymarket/injected-urls").json()["data"]
    assert listed["count"] == 1
    assert listed["urls"][0]["id"] == added["id"]

    fake_client.responses[EVENTS_PATH] = {"data": [event_factory(id="main", volume24hr=1.0)]}
    fake_client.responses["/events/slug/special"] = {
        "data": [event_factory(id="injected", volume24hr=5.0)]
    }
    events = api.get("/api/polymarket/events").json()["data"]["events"]
    assert [e["id"] for e in events] == ["injected", "main"]

    removed = api.delete("/api/polymarket/injected-urls", params={"identifier": added["id"]})
    assert removed.json()["data"] == {"removed": 1}
    assert api.get("/api/polymarket/injected-urls").json()["data"]["count"] == 0


def test_injected_url_errors(api):
    bad = api.post("/api/polymarket/injected-urls", json={"url": "nope"})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "VALIDATION_ERROR"

    missing = api.delete("/api/polymarket/injected-urls", params={"identifier": "abc"})
    assert missing.status_code == 404


def test_clear_injected_urls(api):
    api.post("/api/polymarket/injected-urls", json={"url": INJECTED})
    api.post("/api/polymarket/injected-urls", json={"url": INJECTED + "?x=1"})

    response = api.delete("/api/polymarket/injected-urls")

    assert response.json()["data"] == {"removed": 2}


def test_market_clarifications(api, fake_client):
    fake_client.responses[CLARIFICATIONS_PATH] = {"data": [{"text": "note"}]}

    body = api.get(
        "/api/polymarket/market-clarifications", params={"market_ids": "1, 2"}
    ).json()

    results = body["data"]["results"]
    assert [r["marketId"] for r in results] == ["1", "2"]
    assert results[0]["clarifications"] == [{"text": "note"}]


def test_market_clarifications_requires_ids(api):
    response = api.get("/api/polymarket/market-clarifications", params={"market_ids": " , "})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"
