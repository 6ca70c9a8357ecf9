"""Data Transfer Objects for Polymarket Gamma API responses.

DTOs represent the external API structure as-is. Fields that the upstream sends
in more than one encoding (outcomes, outcomePrices, clobTokenIds) are kept raw;
decoding them is the parser's job, so a malformed value never fails validation.
"""
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _loose_str(value: Any) -> Any:
    """Upstream ids and thresholds arrive as either strings or numbers."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


LooseStr = Annotated[str | None, BeforeValidator(_loose_str)]


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 upstream timestamp ("Z" suffix allowed); None if invalid."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def is_newer(candidate: str | None, current: str | None) -> bool:
    """True when candidate updatedAt is strictly newer than current.

    Falls back to string comparison when either side does not parse; ISO
    timestamps in the same format order correctly as strings.
    """
    if not candidate:
        return False
    if not current:
        return True
    cand_dt, curr_dt = parse_timestamp(candidate), parse_timestamp(current)
    if cand_dt is not None and curr_dt is not None:
        try:
            return cand_dt > curr_dt
        except TypeError:
            # naive vs aware
            pass
    return candidate > current


class PolymarketMarketDTO(BaseModel):
    """DTO for a market from Polymarket's Gamma API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    # Core identifiers
    id: LooseStr = Field(default=None, description="Market ID")
    question: str | None = Field(default=None, description="Market question text")
    slug: str | None = Field(default=None, description="Market slug identifier")
    condition_id: str | None = Field(
        default=None, alias="conditionId", description="Polymarket condition ID (hex)"
    )

    # Raw outcome data: real array, JSON string, or single-element array of JSON
    outcomes: Any = Field(default=None, description="Outcome labels")
    outcome_prices: Any = Field(
        default=None, alias="outcomePrices", description="Outcome prices (decimal 0-1)"
    )
    clob_token_ids: Any = Field(
        default=None, alias="clobTokenIds", description="CLOB token IDs per outcome"
    )

    # Volume and liquidity
    volume: str | float | None = Field(default=None, description="Trading volume")
    volume_num: float | None = Field(default=None, alias="volumeNum")
    volume_24hr: float | None = Field(default=None, alias="volume24hr")
    volume_1wk: float | None = Field(default=None, alias="volume1wk")
    volume_1mo: float | None = Field(default=None, alias="volume1mo")
    volume_1yr: float | None = Field(default=None, alias="volume1yr")
    liquidity: str | float | None = Field(default=None, description="Market liquidity")
    liquidity_num: float | None = Field(default=None, alias="liquidityNum")
    liquidity_clob: float | None = Field(default=None, alias="liquidityClob")

    # Market state
    active: bool | None = Field(default=None, description="Whether market is active")
    closed: bool | None = Field(default=None, description="Whether market is closed")
    archived: bool | None = Field(default=None, description="Whether market is archived")

    # Grouping: presence of groupItemTitle marks one slice of a grouped event
    group_item_title: str | None = Field(default=None, alias="groupItemTitle")
    group_item_threshold: LooseStr = Field(default=None, alias="groupItemThreshold")

    # Pricing snapshot
    last_trade_price: float | None = Field(default=None, alias="lastTradePrice")
    best_bid: float | None = Field(default=None, alias="bestBid")
    best_ask: float | None = Field(default=None, alias="bestAsk")
    spread: float | None = None
    competitive: float | None = None

    # Timestamps
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    end_date: str | None = Field(default=None, alias="endDate")
    end_date_iso: str | None = Field(default=None, alias="endDateIso")
    start_date: str | None = Field(default=None, alias="startDate")
    start_date_iso: str | None = Field(default=None, alias="startDateIso")

    # Resolution metadata
    closed_time: str | None = Field(default=None, alias="closedTime")
    resolved_by: str | None = Field(default=None, alias="resolvedBy")
    resolution_source: str | None = Field(default=None, alias="resolutionSource")
    uma_resolution_status: str | None = Field(default=None, alias="umaResolutionStatus")
    automatically_resolved: bool | None = Field(default=None, alias="automaticallyResolved")

    # Display
    description: str | None = None
    image: str | None = None
    icon: str | None = None


class PolymarketTagDTO(BaseModel):
    """Tag attached to an event (category, league, ...)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: LooseStr = None
    label: str | None = None
    slug: str | None = None


class PolymarketEventDTO(BaseModel):
    """DTO representing an event from Polymarket's Gamma API.

    Events contain one or more markets, kept as raw dicts.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: LooseStr = Field(default=None, description="Event ID")
    ticker: str | None = None
    title: str | None = Field(default=None, description="Event title")
    slug: str | None = Field(default=None, description="Event slug")
    description: str | None = None
    image: str | None = None
    icon: str | None = None

    active: bool | None = None
    closed: bool | None = None
    archived: bool | None = None
    featured: bool | None = None
    restricted: bool | None = None

    volume: str | float | None = None
    volume_24hr: float | None = Field(default=None, alias="volume24hr")
    volume_1wk: float | None = Field(default=None, alias="volume1wk")
    volume_1mo: float | None = Field(default=None, alias="volume1mo")
    volume_1yr: float | None = Field(default=None, alias="volume1yr")
    liquidity: str | float | None = None
    liquidity_clob: float | None = Field(default=None, alias="liquidityClob")
    open_interest: float | None = Field(default=None, alias="openInterest")
    competitive: float | None = None
    comment_count: int | None = Field(default=None, alias="commentCount")

    start_date: str | None = Field(default=None, alias="startDate")
    start_time: str | None = Field(default=None, alias="startTime")
    creation_date: str | None = Field(default=None, alias="creationDate")
    end_date: str | None = Field(default=None, alias="endDate")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    # Raw market records, validated one at a time by the transformer so a
    # malformed market only drops itself
    markets: Annotated[list[Any], BeforeValidator(_none_to_list)] = Field(
        default_factory=list, description="Markets within this event"
    )
    tags: Annotated[list[PolymarketTagDTO], BeforeValidator(_none_to_list)] = Field(
        default_factory=list
    )
