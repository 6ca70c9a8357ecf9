"""DI container. Built once per app; routes resolve services via deps getters."""
from typing import Annotated

from dependency_injector import containers, providers
from fastapi import Depends, Request

from market_events_agg.config import Settings
from market_events_agg.providers.polymarket import (EventsCache,
                                                    PolymarketGammaClient)
from market_events_agg.services import (EventsService, InjectedUrlRegistry,
                                        MarketClarificationsService,
                                        PollingService)


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    cache = providers.Singleton(
        EventsCache, default_ttl_seconds=settings.provided.cache_ttl_seconds
    )
    client = providers.Singleton(
        PolymarketGammaClient,
        base_url=settings.provided.api_base_url,
        timeout=settings.provided.request_timeout_seconds,
    )
    injected_urls = providers.Singleton(
        InjectedUrlRegistry, api_base_url=settings.provided.api_base_url
    )

    events_service = providers.Singleton(
        EventsService,
        client=client,
        cache=cache,
        injected_urls=injected_urls,
        cache_ttl_seconds=settings.provided.cache_ttl_seconds,
        winner_threshold=settings.provided.winner_price_threshold,
    )
    clarifications_service = providers.Singleton(
        MarketClarificationsService, client=client
    )
    polling_service = providers.Singleton(
        PollingService,
        events_service=events_service,
        client=client,
        intervals=settings.provided.polling_intervals,
        polling_endpoint_interval=settings.provided.polling_endpoint_interval,
    )


def init_container(settings: Settings | None = None) -> Container:
    """Create the container, optionally pinning settings (tests, scripts)."""
    container = Container()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container


def _container(request: Request) -> Container:
    return request.app.state.container


def get_events_service(request: Request) -> EventsService:
    """Resolve EventsService from the app's container."""
    return _container(request).events_service()


def get_clarifications_service(request: Request) -> MarketClarificationsService:
    return _container(request).clarifications_service()


def get_injected_urls(request: Request) -> InjectedUrlRegistry:
    return _container(request).injected_urls()


# Type aliases for route injection
EventsServiceDep = Annotated[EventsService, Depends(get_events_service)]
ClarificationsServiceDep = Annotated[
    MarketClarificationsService, Depends(get_clarifications_service)
]
InjectedUrlsDep = Annotated[InjectedUrlRegistry, Depends(get_injected_urls)]
