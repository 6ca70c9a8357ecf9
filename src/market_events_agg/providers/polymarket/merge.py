"""Fold freshly polled events into an already cached page."""
from market_events_agg.providers.polymarket.models import Event, Market

# Event fields that take the fresh value whenever it is set.
_FRESH_FIELDS = (
    "volume_24hr",
    "total_volume",
    "competitive",
    "has_group_items",
    "grouped_outcomes",
)


def _merge_markets(base: list[Market], fresh: list[Market]) -> list[Market]:
    merged: dict[str, Market] = {m.id: m for m in base}
    for market in fresh:
        merged[market.id] = market
    return sorted(merged.values(), key=lambda m: m.volume, reverse=True)


def merge_event(base: Event, fresh: Event) -> Event:
    """Merge one fresh snapshot of an event into its cached version."""
    update: dict = {"markets": _merge_markets(base.markets, fresh.markets)}
    for name in _FRESH_FIELDS:
        value = getattr(fresh, name)
        if value is not None:
            update[name] = value
    # Outcome-type flags always follow the merged outcome list
    grouped = update.get("grouped_outcomes", base.grouped_outcomes)
    count = len(grouped) if grouped is not None else 0
    update["is_binary_outcome"] = True if count == 2 else None
    update["is_multi_outcome"] = True if count > 2 else None
    return base.model_copy(update=update)


def merge_polling_data(base: list[Event], fresh: list[Event]) -> list[Event]:
    """Union two event lists by id, preferring fresh data.

    Existing events keep their position before the final sort, new ones are
    appended. The result is sorted by 24h volume, descending. Merging the same
    fresh batch twice gives the same result as merging it once.
    """
    merged: dict[str, Event] = {event.id: event for event in base}
    for event in fresh:
        current = merged.get(event.id)
        merged[event.id] = event if current is None else merge_event(current, event)
    return sorted(merged.values(), key=lambda e: e.volume_24hr, reverse=True)
