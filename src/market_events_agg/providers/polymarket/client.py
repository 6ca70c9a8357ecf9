"""Async client for the Polymarket Gamma API."""
import logging
from typing import Any

import httpx

from market_events_agg.providers.core.error_mapper import ProviderErrorMapper

logger = logging.getLogger(__name__)


def _encode_param(value: Any) -> Any:
    # Gamma expects lowercase booleans
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_encode_param(v) for v in value]
    return value


def encode_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """Drop unset params and encode the rest for the query string."""
    if not params:
        return {}
    return {k: _encode_param(v) for k, v in params.items() if v is not None}


class PolymarketGammaClient:
    """Thin wrapper over httpx.AsyncClient for the Gamma API.

    Responses are always returned as a dict: endpoints that answer with a bare
    JSON array are wrapped as ``{"data": [...]}``. Every failure surfaces as a
    PolymarketError via ProviderErrorMapper.
    """

    def __init__(
        self,
        base_url: str = "https://gamma-api.polymarket.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Gamma API root.
            timeout: Per-request timeout in seconds.
            transport: Optional transport override (tests use httpx.MockTransport).
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._errors = ProviderErrorMapper(api_name="Polymarket Gamma API")

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """GET path and return the decoded JSON payload.

        Raises:
            PolymarketError: On timeout, transport failure, non-2xx status or
                a body that is not JSON.
        """
        try:
            response = await self._client.get(path, params=encode_params(params))
            response.raise_for_status()
            payload = response.json()
        except Exception as exc:
            error = self._errors.to_app_error(exc, path=path)
            logger.error("Gamma request failed: %s", error)
            raise error from exc

        logger.debug("GET %s -> %s", path, response.status_code)
        if isinstance(payload, list):
            return {"data": payload}
        if isinstance(payload, dict):
            return payload
        return {"data": payload}

    async def close(self) -> None:
        await self._client.aclose()
