"""Query parameters, per-category endpoint configuration and cache keys."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

CACHE_KEY_PREFIX = "polymarket:events:"

EVENTS_PATH = "/events/pagination"
POLLING_PATH = "/events"
SEARCH_PATH = "/public-search"


class Category(str, Enum):
    TRENDING = "trending"
    POLITICS = "politics"
    CRYPTO = "crypto"
    FINANCE = "finance"
    SPORTS = "sports"


class OrderBy(str, Enum):
    VOLUME_24HR = "volume24hr"
    VOLUME = "volume"
    FEATURED_ORDER = "featuredOrder"


class SearchSort(str, Enum):
    VOLUME_24HR = "volume_24hr"
    END_DATE = "end_date"
    START_DATE = "start_date"
    VOLUME = "volume"
    LIQUIDITY = "liquidity"
    CLOSED_TIME = "closed_time"
    COMPETITIVE = "competitive"


class SearchType(str, Enum):
    EVENTS = "events"
    MARKETS = "markets"


class EventsStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class Recurrence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# /events/pagination order values per search sort
SORT_TO_ORDER: dict[SearchSort, str] = {
    SearchSort.VOLUME_24HR: "volume24hr",
    SearchSort.END_DATE: "endDate",
    SearchSort.START_DATE: "startDate",
    SearchSort.VOLUME: "volume",
    SearchSort.LIQUIDITY: "liquidity",
    SearchSort.CLOSED_TIME: "closedTime",
    SearchSort.COMPETITIVE: "competitive",
}

# /public-search has no competitive sort
SORT_TO_PUBLIC_SEARCH: dict[SearchSort, str] = {
    **{sort: sort.value for sort in SearchSort},
    SearchSort.COMPETITIVE: "volume_24hr",
}

DEFAULT_PRESETS = ("EventsTitle", "Events")


class EventsQuery(BaseModel):
    """Parameters of a category listing request."""

    category: Category = Category.TRENDING
    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)
    order: OrderBy | None = None
    tag_slug: str | None = None
    tag_id: str | None = None
    active: bool | None = None
    archived: bool | None = None
    closed: bool | None = None
    ascending: bool | None = None
    end_date_min: str | None = None
    events_status: EventsStatus | None = None
    sort: SearchSort | None = None
    recurrence: Recurrence | None = None


class SearchQuery(BaseModel):
    """Parameters of a search request. One of q, tag_slug, recurrence is required."""

    q: str | None = None
    page: int = Field(default=1, ge=1)
    limit_per_type: int = Field(default=20, ge=1, le=50)
    type: SearchType = SearchType.EVENTS
    events_status: EventsStatus = EventsStatus.ACTIVE
    sort: SearchSort = SearchSort.VOLUME_24HR
    ascending: bool = False
    recurrence: Recurrence | None = None
    tag_slug: str | None = None
    presets: list[str] | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit_per_type

    @property
    def has_criteria(self) -> bool:
        return bool(self.q or self.tag_slug or self.recurrence)


@dataclass(frozen=True)
class EndpointConfig:
    """Where to fetch a category from, plus its optional polling feed."""

    path: str
    params: dict[str, Any]
    polling_path: str | None = None
    polling_params: dict[str, Any] = field(default_factory=dict)


def _utc_now_iso(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _value(member: Any) -> Any:
    return member.value if isinstance(member, Enum) else member


def endpoint_config(query: EventsQuery, now: datetime | None = None) -> EndpointConfig:
    """Build the upstream request for a category listing.

    Args:
        query: Listing parameters.
        now: Clock override for the finance category's end_date_min default.

    Returns:
        EndpointConfig; crypto also carries a polling feed of short-lived
        markets that is merged into the main page.
    """
    order = _value(query.order)
    if order is None:
        order = SORT_TO_ORDER[query.sort] if query.sort else OrderBy.VOLUME_24HR.value

    params: dict[str, Any] = {
        "limit": query.limit,
        "active": True if query.active is None else query.active,
        "archived": False if query.archived is None else query.archived,
        "closed": False if query.closed is None else query.closed,
        "order": order,
        "ascending": False if query.ascending is None else query.ascending,
        "offset": query.offset,
    }
    if query.recurrence:
        params["recurrence"] = query.recurrence.value

    if query.category is Category.POLITICS:
        params["tag_slug"] = query.tag_slug or "politics"
    elif query.category is Category.CRYPTO:
        params["tag_slug"] = query.tag_slug or "15M"
        return EndpointConfig(
            path=EVENTS_PATH,
            params=params,
            polling_path=POLLING_PATH,
            polling_params={
                "tag_id": query.tag_id or "102531",
                "closed": False,
                "limit": 100,
            },
        )
    elif query.category is Category.FINANCE:
        params["tag_id"] = query.tag_id or "120"
        params["end_date_min"] = query.end_date_min or _utc_now_iso(now)
    elif query.category is Category.SPORTS:
        params["tag_slug"] = query.tag_slug or "sports"
        params["order"] = _value(query.order) or OrderBy.VOLUME.value
    return EndpointConfig(path=EVENTS_PATH, params=params)


def _format_key_value(value: Any) -> str:
    value = _value(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def cache_key(query: EventsQuery) -> str:
    """Deterministic cache key: set parameters only, sorted by name.

    The category always leads (``polymarket:events:category:<category>|``)
    so one category can be invalidated with a prefix pattern.
    """
    params = {
        name: value
        for name, value in query.model_dump(exclude={"category"}).items()
        if value is not None
    }
    body = "|".join(
        f"{name}:{_format_key_value(params[name])}" for name in sorted(params)
    )
    return f"{CACHE_KEY_PREFIX}category:{query.category.value}|{body}"


def category_pattern(category: Category) -> str:
    """Glob matching every cached page of a category."""
    return f"{CACHE_KEY_PREFIX}category:{category.value}|*"
