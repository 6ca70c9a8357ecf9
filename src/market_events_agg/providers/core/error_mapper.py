"""Domain concept for mapping upstream exceptions to application errors."""
import asyncio
import json
from dataclasses import dataclass

import httpx

from market_events_agg.providers.core.exceptions import (AppError, ErrorCode,
                                                         PolymarketError)


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps httpx/transport exceptions to a typed PolymarketError.

    Inject this into clients so every upstream failure reaches the service
    layer as one exception type carrying a client-safe code.
    """

    api_name: str = "API"

    def to_app_error(
        self,
        exc: Exception,
        path: str | None = None,
    ) -> AppError:
        """Map an upstream exception to an AppError.

        Args:
            exc: The exception raised while talking to the upstream API.
            path: Optional request path, kept in the internal message for logs.

        Returns:
            An AppError; AppErrors are passed through unchanged.
        """
        if isinstance(exc, AppError):
            return exc
        where = f"{self.api_name} {path}" if path else self.api_name
        if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
            return PolymarketError(ErrorCode.POLYMARKET_TIMEOUT, f"{where} timed out")
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 429:
                return PolymarketError(
                    ErrorCode.POLYMARKET_RATE_LIMIT, f"{where} rate limited"
                )
            return PolymarketError(
                ErrorCode.POLYMARKET_API_ERROR, f"{where} returned {status}"
            )
        if isinstance(exc, httpx.RequestError):
            return PolymarketError(
                ErrorCode.POLYMARKET_FETCH_FAILED, f"{where} request failed: {exc}"
            )
        if isinstance(exc, (json.JSONDecodeError, ValueError)):
            return PolymarketError(
                ErrorCode.POLYMARKET_INVALID_RESPONSE, f"{where} sent invalid JSON"
            )
        return PolymarketError(ErrorCode.POLYMARKET_API_ERROR, f"{where}: {exc}")
