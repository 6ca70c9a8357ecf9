"""API routers.

Includes routes for:
- /api/polymarket/events, /events/{id}, /refresh/{category} - cached event listings
- /api/polymarket/search - text/tag/recurrence search
- /api/polymarket/injected-urls - extra feeds merged into trending
- /api/polymarket/market-clarifications - clarification fan-out
"""
from market_events_agg.routers.polymarket import router as polymarket_router

__all__ = ["polymarket_router"]
