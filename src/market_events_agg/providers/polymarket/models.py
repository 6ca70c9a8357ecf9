"""Canonical event/market/outcome models served by the API.

Models are immutable snapshots of one upstream fetch. JSON uses camelCase and
omits unset fields, so flags such as ``isWinner`` only appear when true and an
empty ``groupedOutcomes`` list is distinct from an absent one.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    """Base for output models: frozen, camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_api(self) -> dict[str, Any]:
        """JSON-serializable dict in the API's camelCase shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Outcome(CanonicalModel):
    """One possible resolution of a market, with its price and share."""

    label: str
    short_label: str
    price: str = Field(description="Percentage price formatted with 2 decimals")
    probability: int = Field(ge=0, le=100)
    volume: int = 0
    icon: str | None = None
    clob_token_id: str | None = None
    condition_id: str | None = None
    # Only ever True; absent otherwise
    is_winner: bool | None = None
    market_id: str | None = None
    market_question: str | None = None
    group_item_threshold: str | None = None
    active: bool | None = None
    closed: bool | None = None


class Market(CanonicalModel):
    """A single tradable question within an event."""

    id: str
    question: str | None = None
    slug: str | None = None
    condition_id: str | None = None
    description: str | None = None
    image: str | None = None
    icon: str | None = None

    volume: float = 0.0
    volume_24hr: float | None = Field(default=None, alias="volume24Hr")
    volume_1wk: float | None = Field(default=None, alias="volume1Wk")
    volume_1mo: float | None = Field(default=None, alias="volume1Mo")
    volume_1yr: float | None = Field(default=None, alias="volume1Yr")
    liquidity: float = 0.0

    active: bool = False
    closed: bool = False
    archived: bool = False

    structured_outcomes: list[Outcome] = Field(default_factory=list)
    # Legacy fields, passed through decoded when possible, verbatim otherwise
    outcomes: Any = None
    outcome_prices: Any = None
    clob_token_ids: list[str] = Field(default_factory=list)

    is_group_item: bool = False
    group_item_title: str | None = None
    group_item_threshold: str | None = None

    last_trade_price: float | None = None
    best_bid: float | None = None
    best_ask: float | None = None
    spread: float | None = None
    competitive: float | None = None

    start_date: str | None = None
    end_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    closed_time: str | None = None
    resolved_by: str | None = None
    resolution_source: str | None = None
    uma_resolution_status: str | None = None
    automatically_resolved: bool | None = None


class Tag(CanonicalModel):
    id: str
    label: str
    slug: str


class Event(CanonicalModel):
    """A top-level event with its markets and aggregated outcomes."""

    id: str
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    image: str | None = None
    icon: str | None = None

    total_volume: float = 0.0
    volume_24hr: float = Field(default=0.0, alias="volume24Hr")
    volume_1wk: float | None = Field(default=None, alias="volume1Wk")
    volume_1mo: float | None = Field(default=None, alias="volume1Mo")
    volume_1yr: float | None = Field(default=None, alias="volume1Yr")
    liquidity: float = 0.0
    open_interest: float | None = None
    competitive: float | None = None

    active: bool = False
    closed: bool = False
    archived: bool = False
    restricted: bool | None = None
    featured: bool | None = None
    comment_count: int | None = None

    markets: list[Market] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)

    start_date: str | None = None
    end_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_time: str | None = None

    has_group_items: bool = False
    # None: aggregation never attempted; []: attempted, nothing qualified
    grouped_outcomes: list[Outcome] | None = None
    is_binary_outcome: bool | None = None
    is_multi_outcome: bool | None = None
    is_resolved: bool = False


class Pagination(CanonicalModel):
    has_more: bool
    total_results: int
    offset: int
    limit: int


class EventsPage(CanonicalModel):
    """One cached/served page of events."""

    events: list[Event] = Field(default_factory=list)
    pagination: Pagination
