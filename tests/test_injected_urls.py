import threading

import pytest

from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         InvalidRequestError)
from market_events_agg.services.injected_urls import InjectedUrlRegistry, url_id

URL = "https://gamma-api.polymarket.com/events/pagination?tag_slug=nba&closed=false"


def test_add_parses_path_and_params(registry):
    entry = registry.add(URL)

    assert entry.id == url_id(URL)
    assert len(entry.id) == 32
    assert entry.path == "/events/pagination"
    assert entry.params == {"tag_slug": "nba", "closed": "false"}
    assert registry.count == 1


def test_add_is_idempotent(registry):
    first = registry.add(URL)
    second = registry.add(URL)
    assert first is second
    assert registry.count == 1


def test_similar_urls_get_distinct_ids(registry):
    """Ids are content hashes, so URLs sharing a long prefix do not collide."""
    a = registry.add(URL + "&limit=1")
    b = registry.add(URL + "&limit=2")
    assert a.id != b.id
    assert registry.count == 2


@pytest.mark.parametrize("bad", ["not a url", "ftp://gamma-api.polymarket.com/events", "/events"])
def test_invalid_urls_rejected(registry, bad):
    with pytest.raises(InvalidRequestError) as exc_info:
        registry.add(bad)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
    assert registry.count == 0


def test_foreign_host_is_accepted_with_warning(registry, caplog):
    registry.add("https://example.com/events")
    assert registry.count == 1
    assert "does not look like a Polymarket API URL" in caplog.text


def test_remove_by_id_or_url(registry):
    entry = registry.add(URL)
    other = registry.add("https://gamma-api.polymarket.com/events?id=7")

    assert registry.remove(entry.id)
    assert registry.remove("https://gamma-api.polymarket.com/events?id=7")
    assert not registry.remove(other.id)
    assert registry.count == 0


def test_contains_get_list_and_clear(registry):
    entry = registry.add(URL)

    assert registry.contains(URL)
    assert registry.contains(entry.id)
    assert registry.get(entry.id) == entry
    assert registry.get("missing") is None
    assert [e.url for e in registry.list()] == [URL]
    assert registry.clear() == 1
    assert registry.list() == []


def test_registries_are_independent():
    a, b = InjectedUrlRegistry(), InjectedUrlRegistry()
    a.add(URL)
    assert b.count == 0


def test_api_shape(registry):
    payload = registry.add(URL).model_dump(mode="json", by_alias=True)
    assert set(payload) == {"id", "url", "path", "params", "createdAt"}


def test_concurrent_add_and_read(registry):
    urls = [f"https://gamma-api.polymarket.com/events?id={i}" for i in range(50)]
    seen = []

    def add_all(chunk):
        for url in chunk:
            entry = registry.add(url)
            seen.append(registry.get(entry.id) is not None and registry.count > 0)

    threads = [threading.Thread(target=add_all, args=(urls[i::5],)) for i in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert registry.count == 50
    assert all(seen) and len(seen) == 50
