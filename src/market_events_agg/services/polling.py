"""Background polling that keeps cached category pages fresh."""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from market_events_agg.providers.core.exceptions import AppError
from market_events_agg.providers.core.protocols import UpstreamClient
from market_events_agg.providers.polymarket.merge import merge_polling_data
from market_events_agg.providers.polymarket.models import Event
from market_events_agg.providers.polymarket.queries import (Category,
                                                            EventsQuery,
                                                            cache_key,
                                                            endpoint_config)
from market_events_agg.services.events_service import (EventsService,
                                                       events_from_payload,
                                                       paginate)

logger = logging.getLogger(__name__)

# Pages kept warm per category: offsets 0/20/40 at the default page size
PAGE_OFFSETS = (0, 20, 40)
PAGE_LIMIT = 20
# Events fetched per category poll
POLL_FETCH_LIMIT = 50


async def run_every(
    interval_seconds: float,
    poll: Callable[[], Awaitable[None]],
    stop_event: asyncio.Event,
    *,
    immediately: bool = True,
) -> None:
    """Call poll() every interval until stop_event is set.

    poll() is expected to handle its own errors; the sleep between rounds
    wakes up as soon as stop_event is set.
    """
    if immediately:
        await poll()
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            await poll()


class PollingService:
    """Per-category polling loops plus the crypto polling-endpoint loop.

    Each round fetches fresh events and merges them into the cached pages at
    offsets 0/20/40, creating pages that are not cached yet.
    """

    def __init__(
        self,
        events_service: EventsService,
        client: UpstreamClient,
        intervals: dict[str, int],
        polling_endpoint_interval: int = 15,
    ) -> None:
        """Initialize the polling service.

        Args:
            events_service: Owns the page cache and the injected URL feed.
            client: Gamma API client.
            intervals: Seconds between polls, keyed by category value.
            polling_endpoint_interval: Seconds between crypto polling-feed polls.
        """
        self._events = events_service
        self._client = client
        self._intervals = intervals
        self._endpoint_interval = polling_endpoint_interval
        self._stop_event = asyncio.Event()
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Start every loop. Calling start() while running is a no-op."""
        if self.running:
            logger.warning("Polling service already running")
            return
        self._stop_event = asyncio.Event()
        for category in Category:
            interval = self._intervals.get(category.value, 60)
            self._tasks[category.value] = asyncio.create_task(
                run_every(interval, lambda c=category: self.poll_category(c), self._stop_event),
                name=f"poll-{category.value}",
            )
            logger.info("Polling %s every %ss", category.value, interval)
        self._tasks["crypto-polling"] = asyncio.create_task(
            run_every(
                self._endpoint_interval,
                self.poll_polling_endpoint,
                self._stop_event,
                immediately=False,
            ),
            name="poll-crypto-endpoint",
        )

    async def stop(self) -> None:
        """Stop all loops and wait for them to finish."""
        if not self.running:
            return
        logger.info("Stopping polling service")
        self._stop_event.set()
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _update_pages(
        self, category: Category, fresh: list[Event], *, create_missing: bool
    ) -> None:
        for offset in PAGE_OFFSETS:
            key = cache_key(EventsQuery(category=category, limit=PAGE_LIMIT, offset=offset))
            cached = self._events.read_page(key)
            if cached is not None:
                events = merge_polling_data(cached.events, fresh)
            elif create_missing:
                events = fresh
            else:
                continue
            self._events.write_page(key, paginate(events, offset, PAGE_LIMIT))

    async def poll_category(self, category: Category) -> None:
        """One polling round for a category. Errors are logged, never raised."""
        try:
            config = endpoint_config(EventsQuery(category=category, limit=POLL_FETCH_LIMIT))
            response = await self._client.get(config.path, config.params)
            fresh = self._events.transform(events_from_payload(response))
            if category is Category.TRENDING:
                injected = await self._events.fetch_injected_events()
                if injected:
                    fresh = merge_polling_data(fresh, injected)
            self._update_pages(category, fresh, create_missing=True)
            logger.info("Polled %s: %d events", category.value, len(fresh))
        except AppError as exc:
            logger.error("Polling %s failed: %s", category.value, exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error polling %s", category.value)

    async def poll_polling_endpoint(self) -> None:
        """Merge the crypto polling feed into already cached crypto pages."""
        config = endpoint_config(EventsQuery(category=Category.CRYPTO))
        try:
            response = await self._client.get(config.polling_path, config.polling_params)
            fresh = self._events.transform(events_from_payload(response))
            self._update_pages(Category.CRYPTO, fresh, create_missing=False)
            logger.info("Polled %s: %d events", config.polling_path, len(fresh))
        except AppError as exc:
            logger.error("Polling %s failed: %s", config.polling_path, exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error polling %s", config.polling_path)
