"""Polymarket Gamma API: client, cache and the event transformation pipeline."""
from market_events_agg.providers.polymarket.cache import EventsCache
from market_events_agg.providers.polymarket.client import PolymarketGammaClient
from market_events_agg.providers.polymarket.merge import merge_polling_data
from market_events_agg.providers.polymarket.models import (Event, EventsPage,
                                                           Market, Outcome,
                                                           Pagination, Tag)
from market_events_agg.providers.polymarket.transformer import (
    transform_event, transform_events)

__all__ = [
    "Event",
    "EventsCache",
    "EventsPage",
    "Market",
    "Outcome",
    "Pagination",
    "PolymarketGammaClient",
    "Tag",
    "merge_polling_data",
    "transform_event",
    "transform_events",
]
