"""Market clarifications: fan-out lookups with per-market error results."""
import asyncio
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from market_events_agg.providers.core.exceptions import (AppError, ErrorCode,
                                                         InvalidRequestError)
from market_events_agg.providers.core.protocols import UpstreamClient

logger = logging.getLogger(__name__)

CLARIFICATIONS_PATH = "/market-clarifications"


class ClarificationResult(BaseModel):
    """Outcome of one market's clarifications lookup."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    market_id: str
    clarifications: list[dict[str, Any]] = Field(default_factory=list)
    status: Literal["success", "error"] = "success"
    error: str | None = None


class MarketClarificationsService:
    """Fetches clarifications for one or many markets from the Gamma API."""

    def __init__(self, client: UpstreamClient) -> None:
        self._client = client

    async def get_market_clarification(self, market_id: str) -> ClarificationResult:
        """Clarifications for one market. Failures become an error result."""
        try:
            if not market_id or not market_id.strip():
                raise InvalidRequestError(
                    ErrorCode.BAD_REQUEST, f"Invalid market ID: {market_id!r}"
                )
            market_id = market_id.strip()
            response = await self._client.get(
                CLARIFICATIONS_PATH, {"market_id": market_id}
            )
        except AppError as exc:
            logger.error("Clarifications for market %s failed: %s", market_id, exc)
            return ClarificationResult(
                market_id=market_id, status="error", error=exc.user_message
            )

        data = response.get("data")
        clarifications = [c for c in data if isinstance(c, dict)] if isinstance(data, list) else []
        return ClarificationResult(market_id=market_id, clarifications=clarifications)

    async def get_market_clarifications(
        self, market_ids: list[str]
    ) -> list[ClarificationResult]:
        """Clarifications for many markets, fetched concurrently.

        Blank ids are dropped. One market failing never fails the batch; it
        yields an error result in that market's position instead.
        """
        valid_ids = [m.strip() for m in market_ids if m and m.strip()]
        if not valid_ids:
            logger.warning("No valid market ids in %s", market_ids)
            return []

        results = await asyncio.gather(
            *(self.get_market_clarification(market_id) for market_id in valid_ids),
            return_exceptions=True,
        )
        out: list[ClarificationResult] = []
        for market_id, result in zip(valid_ids, results):
            if isinstance(result, Exception):
                logger.error("Unexpected error for market %s: %s", market_id, result)
                out.append(
                    ClarificationResult(
                        market_id=market_id,
                        status="error",
                        error="Failed to fetch market clarification",
                    )
                )
            else:
                out.append(result)
        logger.info(
            "Fetched clarifications for %d markets (%d failed)",
            len(out), sum(1 for r in out if r.status == "error"),
        )
        return out
