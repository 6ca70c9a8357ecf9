"""Polymarket event routes.

Handlers validate parameters, call the services and wrap results in the
``{"success": true, "data": ...}`` envelope. AppErrors raised here or in the
services are rendered by the application's exception handler.
"""
import logging
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from market_events_agg.container import (ClarificationsServiceDep,
                                         EventsServiceDep, InjectedUrlsDep)
from market_events_agg.providers.core.exceptions import (AppError, ErrorCode,
                                                         InvalidRequestError)
from market_events_agg.providers.polymarket.queries import (Category,
                                                            EventsQuery,
                                                            EventsStatus,
                                                            OrderBy,
                                                            Recurrence,
                                                            SearchQuery,
                                                            SearchSort,
                                                            SearchType)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/polymarket", tags=["polymarket"])

MIN_LIMIT = 20
MAX_LIMIT = 50
NO_RESULTS_MESSAGE = "No markets available for the selected filters"


def envelope(data: Any, **extra: Any) -> dict[str, Any]:
    return {"success": True, "data": data, **extra}


def _parse_category(value: str) -> Category:
    try:
        return Category(value)
    except ValueError as exc:
        raise InvalidRequestError(
            ErrorCode.INVALID_CATEGORY, f"Unknown category {value!r}"
        ) from exc


def _parse_order(value: str | None) -> OrderBy | None:
    if value is None:
        return None
    try:
        return OrderBy(value)
    except ValueError as exc:
        raise InvalidRequestError(ErrorCode.INVALID_ORDER, f"Unknown order {value!r}") from exc


class InjectUrlRequest(BaseModel):
    url: str = Field(min_length=1, description="Full Gamma API URL to merge into trending")


@router.get("/events")
async def get_events(
    service: EventsServiceDep,
    category: str = Query(default=Category.TRENDING.value, description="Event category"),
    limit: int = Query(default=MIN_LIMIT, description="Page size (20-50)"),
    offset: int = Query(default=0, description="Events to skip"),
    order: str | None = Query(default=None, description="volume24hr, volume or featuredOrder"),
    tag_slug: str | None = Query(default=None),
    tag_id: str | None = Query(default=None),
    active: bool | None = Query(default=None),
    archived: bool | None = Query(default=None),
    closed: bool | None = Query(default=None),
    ascending: bool | None = Query(default=None),
    end_date_min: str | None = Query(default=None, description="ISO-8601 lower bound on end date"),
    events_status: EventsStatus | None = Query(default=None),
    sort: SearchSort | None = Query(default=None),
    recurrence: Recurrence | None = Query(default=None),
) -> dict[str, Any]:
    """List transformed events for a category, paginated and cached."""
    if not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise InvalidRequestError(ErrorCode.INVALID_LIMIT, f"limit={limit}")
    if offset < 0:
        raise InvalidRequestError(ErrorCode.INVALID_OFFSET, f"offset={offset}")

    query = EventsQuery(
        category=_parse_category(category),
        limit=limit,
        offset=offset,
        order=_parse_order(order),
        tag_slug=tag_slug,
        tag_id=tag_id,
        active=active,
        archived=archived,
        closed=closed,
        ascending=ascending,
        end_date_min=end_date_min,
        events_status=events_status,
        sort=sort,
        recurrence=recurrence,
    )
    page = await service.get_events(query)
    return envelope(page.to_api())


@router.get("/events/{event_id}")
async def get_event(event_id: str, service: EventsServiceDep) -> dict[str, Any]:
    """Get one event by id from the cached category pages."""
    event = await service.get_event_by_id(event_id)
    if event is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Event {event_id} not in cache")
    return envelope(event.to_api())


@router.post("/refresh/{category}")
async def refresh_category(category: str, service: EventsServiceDep) -> dict[str, Any]:
    """Drop the cached pages of a category so the next request refetches."""
    parsed = _parse_category(category)
    deleted = await service.refresh_cache(parsed)
    return {
        "success": True,
        "message": f"Cache refreshed for category: {parsed.value}",
        "data": {"category": parsed.value, "keysDeleted": deleted},
    }


@router.get("/search")
async def search_events(
    service: EventsServiceDep,
    q: str | None = Query(default=None, description="Search text"),
    page: int = Query(default=1, ge=1),
    limit_per_type: int = Query(default=20, ge=1, le=MAX_LIMIT),
    type: SearchType = Query(default=SearchType.EVENTS),
    events_status: EventsStatus = Query(default=EventsStatus.ACTIVE),
    sort: SearchSort = Query(default=SearchSort.VOLUME_24HR),
    ascending: bool = Query(default=False),
    recurrence: Recurrence | None = Query(default=None),
    tag_slug: str | None = Query(default=None),
    presets: list[str] | None = Query(default=None),
) -> dict[str, Any]:
    """Search events by text, tag or recurrence."""
    query = SearchQuery(
        q=q,
        page=page,
        limit_per_type=limit_per_type,
        type=type,
        events_status=events_status,
        sort=sort,
        ascending=ascending,
        recurrence=recurrence,
        tag_slug=tag_slug,
        presets=presets,
    )
    if not query.has_criteria:
        raise InvalidRequestError(
            ErrorCode.VALIDATION_ERROR, "search needs q, tag_slug or recurrence"
        )
    result = await service.search_events(query)
    if not result.events:
        return envelope(result.to_api(), message=NO_RESULTS_MESSAGE)
    return envelope(result.to_api())


# ---- Injected URLs ----
@router.get("/injected-urls")
async def list_injected_urls(registry: InjectedUrlsDep) -> dict[str, Any]:
    urls = [u.model_dump(mode="json", by_alias=True) for u in registry.list()]
    return envelope({"urls": urls, "count": len(urls)})


@router.post("/injected-urls")
async def add_injected_url(body: InjectUrlRequest, registry: InjectedUrlsDep) -> dict[str, Any]:
    """Register a Gamma URL whose events are merged into the trending feed."""
    entry = registry.add(body.url)
    return envelope(entry.model_dump(mode="json", by_alias=True))


@router.delete("/injected-urls")
async def remove_injected_url(
    registry: InjectedUrlsDep,
    identifier: str | None = Query(default=None, description="URL id or the URL itself"),
) -> dict[str, Any]:
    """Remove one injected URL, or all of them when no identifier is given."""
    if identifier is None:
        return envelope({"removed": registry.clear()})
    if not registry.remove(identifier):
        raise AppError(ErrorCode.NOT_FOUND, f"Injected URL {identifier} not registered")
    return envelope({"removed": 1})


@router.get("/market-clarifications")
async def get_market_clarifications(
    service: ClarificationsServiceDep,
    market_ids: str = Query(..., description="Comma-separated market ids"),
) -> dict[str, Any]:
    """Clarifications for several markets; per-market failures are reported inline."""
    ids = [m for m in market_ids.split(",") if m.strip()]
    if not ids:
        raise InvalidRequestError(ErrorCode.BAD_REQUEST, "market_ids is empty")
    results = await service.get_market_clarifications(ids)
    return envelope(
        {"results": [r.model_dump(by_alias=True, exclude_none=True) for r in results]}
    )
