import fnmatch
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from market_events_agg.providers.polymarket.queries import (
    EVENTS_PATH, POLLING_PATH, Category, EventsQuery, OrderBy, SearchQuery,
    SearchSort, cache_key, category_pattern, endpoint_config)


def test_cache_key_contains_only_set_params_sorted():
    query = EventsQuery(category=Category.POLITICS, limit=20, offset=40,
                        active=True, order=OrderBy.VOLUME)
    assert cache_key(query) == (
        "polymarket:events:category:politics|"
        "active:true|limit:20|offset:40|order:volume"
    )


def test_cache_key_is_deterministic():
    a = EventsQuery(category=Category.SPORTS, offset=20, closed=False)
    b = EventsQuery(closed=False, offset=20, category="sports")
    assert cache_key(a) == cache_key(b)
    assert "closed:false" in cache_key(a)


def test_cache_key_matches_category_pattern():
    key = cache_key(EventsQuery(category=Category.CRYPTO, active=True))
    assert fnmatch.fnmatchcase(key, category_pattern(Category.CRYPTO))
    assert not fnmatch.fnmatchcase(key, category_pattern(Category.FINANCE))


def test_trending_defaults():
    config = endpoint_config(EventsQuery())

    assert config.path == EVENTS_PATH
    assert config.params == {
        "limit": 20,
        "active": True,
        "archived": False,
        "closed": False,
        "order": "volume24hr",
        "ascending": False,
        "offset": 0,
    }
    assert config.polling_path is None


def test_politics_uses_tag_slug():
    config = endpoint_config(EventsQuery(category=Category.POLITICS))
    assert config.params["tag_slug"] == "politics"


def test_crypto_has_polling_feed():
    config = endpoint_config(EventsQuery(category=Category.CRYPTO))

    assert config.params["tag_slug"] == "15M"
    assert config.polling_path == POLLING_PATH
    assert config.polling_params == {"tag_id": "102531", "closed": False, "limit": 100}


def test_finance_defaults_end_date_min_to_now():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    config = endpoint_config(EventsQuery(category=Category.FINANCE), now=now)

    assert config.params["tag_id"] == "120"
    assert config.params["end_date_min"] == "2024-05-01T12:00:00.000Z"


def test_sports_orders_by_volume_unless_overridden():
    assert endpoint_config(EventsQuery(category=Category.SPORTS)).params["order"] == "volume"
    query = EventsQuery(category=Category.SPORTS, order=OrderBy.FEATURED_ORDER)
    assert endpoint_config(query).params["order"] == "featuredOrder"


def test_sort_maps_to_order():
    config = endpoint_config(EventsQuery(sort=SearchSort.CLOSED_TIME))
    assert config.params["order"] == "closedTime"


def test_invalid_query_values_rejected():
    with pytest.raises(ValidationError):
        EventsQuery(category="weather")
    with pytest.raises(ValidationError):
        EventsQuery(offset=-1)


def test_search_query_helpers():
    query = SearchQuery(q="election", page=3, limit_per_type=10)
    assert query.offset == 20
    assert query.has_criteria
    assert not SearchQuery().has_criteria
