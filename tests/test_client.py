import asyncio

import httpx
import pytest

from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         PolymarketError)
from market_events_agg.providers.polymarket.client import (
    PolymarketGammaClient, encode_params)


def _client(handler):
    return PolymarketGammaClient(
        base_url="https://gamma.test", transport=httpx.MockTransport(handler)
    )


def _get(client, path, params=None):
    async def run():
        try:
            return await client.get(path, params)
        finally:
            await client.close()

    return asyncio.run(run())


def test_encode_params():
    assert encode_params({"closed": False, "active": True, "limit": 20, "tag": None}) == {
        "closed": "false",
        "active": "true",
        "limit": 20,
    }
    assert encode_params(None) == {}


def test_get_sends_encoded_query():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"data": [], "pagination": {"hasMore": False}})

    payload = _get(_client(handler), "/events/pagination", {"closed": False, "limit": 20})

    assert payload["pagination"] == {"hasMore": False}
    assert seen["url"].path == "/events/pagination"
    assert seen["url"].params["closed"] == "false"
    assert seen["url"].params["limit"] == "20"


def test_list_payload_is_wrapped():
    client = _client(lambda request: httpx.Response(200, json=[{"id": "1"}]))
    assert _get(client, "/events") == {"data": [{"id": "1"}]}


@pytest.mark.parametrize(
    "status,code",
    [
        (429, ErrorCode.POLYMARKET_RATE_LIMIT),
        (500, ErrorCode.POLYMARKET_API_ERROR),
        (404, ErrorCode.POLYMARKET_API_ERROR),
    ],
)
def test_error_status_mapped(status, code):
    client = _client(lambda request: httpx.Response(status, json={"error": "x"}))
    with pytest.raises(PolymarketError) as exc_info:
        _get(client, "/events")
    assert exc_info.value.code == code


def test_timeout_mapped():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(PolymarketError) as exc_info:
        _get(_client(handler), "/events")
    assert exc_info.value.code == ErrorCode.POLYMARKET_TIMEOUT
    assert exc_info.value.status_code == 504


def test_connection_error_mapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(PolymarketError) as exc_info:
        _get(_client(handler), "/events")
    assert exc_info.value.code == ErrorCode.POLYMARKET_FETCH_FAILED


def test_invalid_json_mapped():
    client = _client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    with pytest.raises(PolymarketError) as exc_info:
        _get(client, "/events")
    assert exc_info.value.code == ErrorCode.POLYMARKET_INVALID_RESPONSE


def test_error_response_hides_internal_detail():
    client = _client(lambda request: httpx.Response(500, text="stack trace here"))
    with pytest.raises(PolymarketError) as exc_info:
        _get(client, "/events")
    body = exc_info.value.to_response()
    assert body == {
        "code": "POLYMARKET_API_ERROR",
        "message": "Unable to fetch market data. Please try again later.",
        "statusCode": 503,
    }
