"""Events service: cache -> fetch -> transform -> merge -> paginate -> cache."""
import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from market_events_agg.providers.core.exceptions import (AppError, CacheError,
                                                         ErrorCode)
from market_events_agg.providers.core.protocols import (CacheBackend,
                                                        UpstreamClient)
from market_events_agg.providers.polymarket.merge import merge_polling_data
from market_events_agg.providers.polymarket.models import (Event, EventsPage,
                                                           Pagination)
from market_events_agg.providers.polymarket.outcomes import \
    WINNER_PRICE_THRESHOLD
from market_events_agg.providers.polymarket.queries import (
    DEFAULT_PRESETS, EVENTS_PATH, SEARCH_PATH, SORT_TO_ORDER,
    SORT_TO_PUBLIC_SEARCH, Category, EventsQuery, EventsStatus, SearchQuery,
    SearchSort, cache_key, category_pattern, endpoint_config)
from market_events_agg.providers.polymarket.transformer import \
    transform_events
from market_events_agg.services.injected_urls import (InjectedUrl,
                                                      InjectedUrlRegistry)

logger = logging.getLogger(__name__)


def paginate(events: list[Event], offset: int, limit: int) -> EventsPage:
    """Slice one page out of a full, sorted event list."""
    total = len(events)
    return EventsPage(
        events=events[offset:offset + limit],
        pagination=Pagination(
            has_more=offset + limit < total,
            total_results=total,
            offset=offset,
            limit=limit,
        ),
    )


def empty_page(offset: int, limit: int) -> EventsPage:
    return paginate([], offset, limit)


def events_from_payload(payload: Any) -> list[Any]:
    """Pull the event list out of list / {data: list} / {data: obj} payloads."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if data:
            return [data]
    return []


class EventsService:
    """Serves transformed, paginated Polymarket events.

    Pages are cached per query. Cache misses and cache errors are handled the
    same way: the page is rebuilt from the upstream API.
    """

    def __init__(
        self,
        client: UpstreamClient,
        cache: CacheBackend,
        injected_urls: InjectedUrlRegistry,
        cache_ttl_seconds: int = 30,
        winner_threshold: float = WINNER_PRICE_THRESHOLD,
    ) -> None:
        """Initialize with collaborators.

        Args:
            client: Gamma API client.
            cache: Page cache (values are serialized EventsPage JSON).
            injected_urls: URLs merged into the trending feed.
            cache_ttl_seconds: TTL for every cached page.
            winner_threshold: Winner price threshold passed to the transformer.
        """
        self._client = client
        self._cache = cache
        self._injected_urls = injected_urls
        self._ttl = cache_ttl_seconds
        self._winner_threshold = winner_threshold

    # ---- Cache ----
    def read_page(self, key: str) -> EventsPage | None:
        """Cached page for key; None on miss, backend error or undecodable entry."""
        try:
            raw = self._cache.get(key)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return EventsPage.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            return None

    def write_page(self, key: str, page: EventsPage) -> None:
        try:
            self._cache.set(
                key,
                page.model_dump_json(by_alias=True, exclude_none=True),
                self._ttl,
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Cache write failed for %s: %s", key, exc)

    # ---- Fetching ----
    def transform(self, batch: Any) -> list[Event]:
        return transform_events(batch, self._winner_threshold)

    async def fetch_category_events(self, query: EventsQuery) -> list[Event]:
        """Fetch and transform the full event list behind a category listing.

        The main feed must succeed. The crypto polling feed and the injected
        URLs (trending only) are merged in when available; their failures are
        logged and ignored.
        """
        config = endpoint_config(query)
        logger.info("Fetching %s from %s", query.category.value, config.path)
        response = await self._client.get(config.path, config.params)
        events = self.transform(events_from_payload(response))

        if config.polling_path:
            try:
                polled = await self._client.get(config.polling_path, config.polling_params)
                polled_events = self.transform(events_from_payload(polled))
                if polled_events:
                    events = merge_polling_data(events, polled_events)
            except AppError as exc:
                logger.warning("Polling feed failed, using main data only: %s", exc)

        if query.category is Category.TRENDING:
            injected = await self.fetch_injected_events()
            if injected:
                events = merge_polling_data(events, injected)
                logger.info(
                    "Merged %d injected events into trending (%d total)",
                    len(injected), len(events),
                )
        return events

    async def _fetch_injected(self, entry: InjectedUrl) -> list[Event]:
        response = await self._client.get(entry.path, entry.params)
        return self.transform(events_from_payload(response))

    async def fetch_injected_events(self) -> list[Event]:
        """Fetch every injected URL concurrently; failed URLs are skipped."""
        entries = self._injected_urls.list()
        if not entries:
            return []
        results = await asyncio.gather(
            *(self._fetch_injected(entry) for entry in entries),
            return_exceptions=True,
        )
        events: list[Event] = []
        for entry, result in zip(entries, results):
            if isinstance(result, Exception):
                logger.error("Injected URL %s (%s) failed: %s", entry.id, entry.url, result)
                continue
            events.extend(result)
        return events

    # ---- Public API ----
    async def get_events(self, query: EventsQuery) -> EventsPage:
        """Return one page of a category, from cache when possible.

        Raises:
            AppError: Upstream failure with no cached page to fall back on.
        """
        key = cache_key(query)
        cached = self.read_page(key)
        if cached is not None:
            logger.info("Cache hit for %s", key)
            return cached

        try:
            events = await self.fetch_category_events(query)
        except AppError as exc:
            logger.error("Fetching %s failed: %s", query.category.value, exc)
            stale = self.read_page(key)
            if stale is not None:
                logger.info("Serving cached %s page after upstream failure", query.category.value)
                return stale
            raise

        page = paginate(events, query.offset, query.limit)
        self.write_page(key, page)
        logger.info(
            "Served %d/%d %s events",
            len(page.events), page.pagination.total_results, query.category.value,
        )
        return page

    async def get_event_by_id(self, event_id: str) -> Event | None:
        """Look an event up in the cached pages of every category."""
        for category in Category:
            try:
                keys = self._cache.keys(category_pattern(category))
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Cache scan failed for %s: %s", category.value, exc)
                continue
            for key in sorted(keys):
                page = self.read_page(key)
                if page is None:
                    continue
                for event in page.events:
                    if event.id == event_id:
                        return event
        logger.info("Event %s not found in cache", event_id)
        return None

    async def refresh_cache(self, category: Category) -> int:
        """Drop every cached page of a category. Returns the number of keys removed.

        Raises:
            CacheError: CACHE_WRITE_FAILED if the backend fails.
        """
        try:
            keys = self._cache.keys(category_pattern(category))
            for key in keys:
                self._cache.delete(key)
        except Exception as exc:  # pylint: disable=broad-except
            raise CacheError(
                ErrorCode.CACHE_WRITE_FAILED,
                f"Failed to refresh cache for {category.value}: {exc}",
            ) from exc
        logger.info("Refreshed %s cache (%d keys)", category.value, len(keys))
        return len(keys)

    async def search_events(self, query: SearchQuery) -> EventsPage:
        """Search events by text, tag or recurrence.

        Tag and recurrence searches go through the pagination endpoint; text
        searches use public-search. Upstream errors yield an empty page.
        """
        if not query.has_criteria:
            logger.warning("Search without q, tag_slug or recurrence")
            return empty_page(query.offset, query.limit_per_type)

        try:
            if query.tag_slug or query.recurrence:
                response = await self._client.get(EVENTS_PATH, self._pagination_params(query))
                raw_events = events_from_payload(response)
            else:
                response = await self._client.get(SEARCH_PATH, self._public_search_params(query))
                raw_events = response.get("events") or []
            events = self.transform(raw_events)
        except AppError as exc:
            logger.error("Search failed, returning no results: %s", exc)
            return empty_page(query.offset, query.limit_per_type)

        upstream = response.get("pagination") or {}
        return EventsPage(
            events=events,
            pagination=Pagination(
                has_more=bool(upstream.get("hasMore", False)),
                total_results=int(upstream.get("totalResults", 0) or 0),
                offset=query.offset,
                limit=query.limit_per_type,
            ),
        )

    @staticmethod
    def _pagination_params(query: SearchQuery) -> dict[str, Any]:
        closed = query.events_status is EventsStatus.RESOLVED
        order = SORT_TO_ORDER[query.sort]
        # Resolved events default to most recently closed
        if closed and query.sort is SearchSort.VOLUME_24HR:
            order = "closedTime"
        params: dict[str, Any] = {
            "limit": query.limit_per_type,
            "active": True,
            "archived": False,
            "closed": closed,
            "order": order,
            "ascending": query.ascending,
            "offset": query.offset,
        }
        if query.recurrence:
            params["recurrence"] = query.recurrence.value
        if query.tag_slug:
            params["tag_slug"] = query.tag_slug
        return params

    @staticmethod
    def _public_search_params(query: SearchQuery) -> dict[str, Any]:
        return {
            "q": query.q or "",
            "page": query.page,
            "limit_per_type": query.limit_per_type,
            "type": query.type.value,
            "events_status": query.events_status.value,
            "sort": SORT_TO_PUBLIC_SEARCH[query.sort],
            "ascending": query.ascending,
            "presets": list(query.presets or DEFAULT_PRESETS),
        }
