"""Mapping from Polymarket Gamma market records to the canonical Market."""
import logging
from typing import Any

from pydantic import ValidationError

from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         TransformationError)
from market_events_agg.providers.polymarket.dto import PolymarketMarketDTO
from market_events_agg.providers.polymarket.models import Market
from market_events_agg.providers.polymarket.outcomes import (
    WINNER_PRICE_THRESHOLD, build_structured_outcomes, market_volume)
from market_events_agg.providers.polymarket.parsing import (
    decode_legacy, parse_clob_token_ids, to_float)

logger = logging.getLogger(__name__)


def market_liquidity(market: PolymarketMarketDTO) -> float:
    """String liquidity parsed, else liquidityNum, else liquidityClob."""
    if isinstance(market.liquidity, str):
        return to_float(market.liquidity) or 0.0
    return (
        to_float(market.liquidity_num)
        or to_float(market.liquidity_clob)
        or to_float(market.liquidity)
        or 0.0
    )


def transform_market(
    raw: PolymarketMarketDTO | dict[str, Any],
    winner_threshold: float = WINNER_PRICE_THRESHOLD,
) -> Market:
    """Convert one upstream market to a canonical Market.

    The input is never mutated; a new Market is built on every call.

    Args:
        raw: Market DTO, or the raw JSON dict from the Gamma API.
        winner_threshold: Price (0-100) a closed market's top outcome needs
            to be marked as winner.

    Returns:
        Market with structured outcomes and legacy fields preserved.

    Raises:
        TransformationError: DATA_PARSING_ERROR when the record cannot be
            mapped at all (e.g. missing id, wrong top-level type).
    """
    try:
        market = (
            raw
            if isinstance(raw, PolymarketMarketDTO)
            else PolymarketMarketDTO.model_validate(raw)
        )
        if not market.id:
            raise ValueError("market has no id")

        return Market(
            id=market.id,
            question=market.question,
            slug=market.slug,
            condition_id=market.condition_id,
            description=market.description,
            image=market.image,
            icon=market.icon,
            volume=market_volume(market),
            volume_24hr=market.volume_24hr,
            volume_1wk=market.volume_1wk,
            volume_1mo=market.volume_1mo,
            volume_1yr=market.volume_1yr,
            liquidity=market_liquidity(market),
            active=bool(market.active),
            closed=bool(market.closed),
            archived=bool(market.archived),
            structured_outcomes=build_structured_outcomes(market, winner_threshold),
            outcomes=decode_legacy(market.outcomes),
            outcome_prices=decode_legacy(market.outcome_prices),
            clob_token_ids=parse_clob_token_ids(market.clob_token_ids),
            is_group_item=bool(market.group_item_title),
            group_item_title=market.group_item_title,
            group_item_threshold=market.group_item_threshold,
            last_trade_price=market.last_trade_price,
            best_bid=market.best_bid,
            best_ask=market.best_ask,
            spread=market.spread,
            competitive=market.competitive,
            start_date=market.start_date or market.start_date_iso,
            end_date=market.end_date or market.end_date_iso,
            created_at=market.created_at,
            updated_at=market.updated_at,
            closed_time=market.closed_time,
            resolved_by=market.resolved_by,
            resolution_source=market.resolution_source,
            uma_resolution_status=market.uma_resolution_status,
            automatically_resolved=market.automatically_resolved,
        )
    except (ValidationError, ValueError, TypeError, AttributeError) as exc:
        market_id = getattr(raw, "id", None) or (
            raw.get("id") if isinstance(raw, dict) else None
        )
        raise TransformationError(
            ErrorCode.DATA_PARSING_ERROR,
            f"Failed to transform market {market_id}: {exc}",
        ) from exc
