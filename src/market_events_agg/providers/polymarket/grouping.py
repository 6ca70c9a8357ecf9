"""Deduplicate raw events that appear across several paginated/polled fetches."""
from typing import Any

from market_events_agg.providers.polymarket.dto import (PolymarketEventDTO,
                                                        PolymarketTagDTO,
                                                        is_newer)

# Event scalars refreshed from whichever record was updated last.
_REFRESHED_FIELDS = (
    "volume_24hr",
    "volume_1wk",
    "volume_1mo",
    "volume_1yr",
    "competitive",
    "updated_at",
)


def _raw_field(market: Any, name: str) -> str | None:
    value = market.get(name) if isinstance(market, dict) else None
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _merge_markets(existing: list[Any], incoming: list[Any]) -> list[Any]:
    """Union raw market records by id; unvalidated records are passed through."""
    merged: dict[str, Any] = {}
    anonymous: list[Any] = []
    for market in [*existing, *incoming]:
        market_id = _raw_field(market, "id")
        if not market_id:
            anonymous.append(market)
            continue
        current = merged.get(market_id)
        if current is None or is_newer(
            _raw_field(market, "updatedAt"), _raw_field(current, "updatedAt")
        ):
            merged[market_id] = market
    return [*merged.values(), *anonymous]


def _merge_tags(
    existing: list[PolymarketTagDTO], incoming: list[PolymarketTagDTO]
) -> list[PolymarketTagDTO]:
    merged: dict[str | None, PolymarketTagDTO] = {}
    for tag in [*existing, *incoming]:
        merged.setdefault(tag.id, tag)
    return list(merged.values())


def merge_event_records(
    existing: PolymarketEventDTO, incoming: PolymarketEventDTO
) -> PolymarketEventDTO:
    """Merge two records of the same event into a new one.

    Markets are unioned by id; on a conflicting id the newer updatedAt wins,
    otherwise the first seen is kept. Tags are unioned by id. When incoming
    is newer its volume windows, competitive score and updatedAt replace the
    existing values.
    """
    update: dict = {
        "markets": _merge_markets(existing.markets, incoming.markets),
        "tags": _merge_tags(existing.tags, incoming.tags),
    }
    if is_newer(incoming.updated_at, existing.updated_at):
        for name in _REFRESHED_FIELDS:
            value = getattr(incoming, name)
            if value is not None:
                update[name] = value
    return existing.model_copy(update=update)


def group_events_by_id(
    raw_events: list[PolymarketEventDTO],
) -> list[PolymarketEventDTO]:
    """Collapse events sharing an id into one, keeping first-seen order."""
    grouped: dict[str, PolymarketEventDTO] = {}
    anonymous: list[PolymarketEventDTO] = []
    for event in raw_events:
        if not event.id:
            anonymous.append(event)
            continue
        current = grouped.get(event.id)
        grouped[event.id] = event if current is None else merge_event_records(current, event)
    return [*grouped.values(), *anonymous]
