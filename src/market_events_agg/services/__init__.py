"""Services orchestrating the Polymarket client, cache and transformation core."""
from market_events_agg.services.clarifications import (
    ClarificationResult, MarketClarificationsService)
from market_events_agg.services.events_service import EventsService
from market_events_agg.services.injected_urls import (InjectedUrl,
                                                      InjectedUrlRegistry)
from market_events_agg.services.polling import PollingService

__all__ = [
    "ClarificationResult",
    "EventsService",
    "InjectedUrl",
    "InjectedUrlRegistry",
    "MarketClarificationsService",
    "PollingService",
]
