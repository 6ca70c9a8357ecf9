import pytest

from market_events_agg.providers.core.exceptions import (ErrorCode,
                                                         TransformationError)
from market_events_agg.providers.polymarket.mapper import transform_market


def test_transform_market_maps_fields(market_factory):
    market = transform_market(
        market_factory(volume24hr=12.5, lastTradePrice=0.84, endDateIso="2024-12-31")
    )

    assert market.id == "m1"
    assert market.volume == 1000.0
    assert market.liquidity == 500.0
    assert market.volume_24hr == 12.5
    assert market.last_trade_price == 0.84
    assert market.end_date == "2024-12-31"
    assert market.active and not market.closed
    assert market.is_group_item is False
    assert [o.probability for o in market.structured_outcomes] == [85, 15]


def test_legacy_fields_are_decoded(market_factory):
    market = transform_market(market_factory())

    assert market.outcomes == ["Yes", "No"]
    assert market.outcome_prices == ["0.85", "0.15"]
    assert market.clob_token_ids == ["1111", "2222"]


def test_undecodable_legacy_field_passes_through(market_factory):
    market = transform_market(market_factory(outcomes="Yes or No"))
    assert market.outcomes == "Yes or No"
    assert market.structured_outcomes == []


def test_numeric_id_is_stringified(market_factory):
    assert transform_market(market_factory(id=42)).id == "42"


def test_liquidity_fallbacks(market_factory):
    assert transform_market(market_factory(liquidity=None, liquidityNum=7.0)).liquidity == 7.0
    assert transform_market(market_factory(liquidity=None, liquidityClob=3.0)).liquidity == 3.0
    assert transform_market(market_factory(liquidity="abc")).liquidity == 0.0


def test_group_item_flag(market_factory):
    market = transform_market(market_factory(groupItemTitle="Alice", groupItemThreshold=1))
    assert market.is_group_item is True
    assert market.group_item_threshold == "1"


def test_input_is_not_mutated(market_factory):
    raw = market_factory()
    snapshot = dict(raw)
    transform_market(raw)
    assert raw == snapshot


def test_winner_threshold_is_threaded_through(market_factory):
    raw = market_factory(closed=True, outcomePrices='["0.96", "0.04"]')
    assert transform_market(raw).structured_outcomes[0].is_winner is None
    assert transform_market(raw, winner_threshold=95.0).structured_outcomes[0].is_winner


def test_missing_id_raises(market_factory):
    with pytest.raises(TransformationError) as exc_info:
        transform_market(market_factory(id=None))
    assert exc_info.value.code == ErrorCode.DATA_PARSING_ERROR


def test_wrong_type_raises():
    with pytest.raises(TransformationError) as exc_info:
        transform_market(["not", "a", "market"])
    assert exc_info.value.code == ErrorCode.DATA_PARSING_ERROR


def test_camel_case_output(market_factory):
    payload = transform_market(market_factory(volume24hr=5.0)).to_api()

    assert payload["volume24Hr"] == 5.0
    assert payload["structuredOutcomes"][0]["shortLabel"] == "YES"
    assert payload["conditionId"] == "0xabc"
    assert "groupItemTitle" not in payload
