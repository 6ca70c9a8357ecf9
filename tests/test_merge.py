from market_events_agg.providers.polymarket.merge import (merge_event,
                                                         merge_polling_data)
from market_events_agg.providers.polymarket.transformer import transform_event


def _event(event_factory, market_factory, event_id="e1", volume24hr=100.0,
           markets=None, **overrides):
    markets = markets or [market_factory()]
    return transform_event(
        event_factory(id=event_id, volume24hr=volume24hr, markets=markets, **overrides)
    )


def test_new_events_are_appended_and_sorted(event_factory, market_factory):
    base = [_event(event_factory, market_factory, "a", 10.0)]
    fresh = [_event(event_factory, market_factory, "b", 20.0)]

    merged = merge_polling_data(base, fresh)

    assert [e.id for e in merged] == ["b", "a"]


def test_fresh_fields_overwrite(event_factory, market_factory):
    base = _event(event_factory, market_factory, volume24hr=10.0, title="Cached title")
    fresh = _event(
        event_factory, market_factory, volume24hr=55.0, title="Fresh title",
        markets=[market_factory(outcomePrices='["0.6", "0.4"]')],
    )

    merged = merge_event(base, fresh)

    assert merged.volume_24hr == 55.0
    assert [o.probability for o in merged.grouped_outcomes] == [60, 40]
    assert merged.markets[0].structured_outcomes[0].probability == 60
    # descriptive fields stay cached
    assert merged.title == "Cached title"


def test_markets_unioned_and_sorted_by_volume(event_factory, market_factory):
    base = _event(event_factory, market_factory, markets=[
        market_factory(id="m1", volume="10"),
    ])
    fresh = _event(event_factory, market_factory, markets=[
        market_factory(id="m2", volume="50"),
    ])

    merged = merge_event(base, fresh)

    assert [m.id for m in merged.markets] == ["m2", "m1"]


def test_merge_is_idempotent(event_factory, market_factory):
    base = [
        _event(event_factory, market_factory, "a", 10.0),
        _event(event_factory, market_factory, "b", 5.0),
    ]
    fresh = [
        _event(event_factory, market_factory, "b", 30.0),
        _event(event_factory, market_factory, "c", 1.0),
    ]

    once = merge_polling_data(base, fresh)
    twice = merge_polling_data(once, fresh)

    assert once == twice
    assert [e.id for e in once] == ["b", "a", "c"]


def test_inputs_are_not_mutated(event_factory, market_factory):
    base = [_event(event_factory, market_factory, "a", 10.0)]
    fresh = [_event(event_factory, market_factory, "a", 99.0)]

    merge_polling_data(base, fresh)

    assert base[0].volume_24hr == 10.0


def test_empty_fresh_keeps_base(event_factory, market_factory):
    base = [_event(event_factory, market_factory, "a", 10.0)]
    assert merge_polling_data(base, []) == base


def test_outcome_type_flags_follow_merged_outcomes(event_factory, market_factory):
    base = _event(event_factory, market_factory)
    fresh = _event(event_factory, market_factory, markets=[
        market_factory(outcomes=["A", "B", "C"], outcomePrices=["0.5", "0.3", "0.2"])
    ])
    assert base.is_binary_outcome is True

    merged = merge_event(base, fresh)

    assert len(merged.grouped_outcomes) == 3
    assert merged.is_multi_outcome is True
    assert merged.is_binary_outcome is None
    assert merge_event(merged, base).is_binary_outcome is True
    assert merge_event(merged, base).is_multi_outcome is None
