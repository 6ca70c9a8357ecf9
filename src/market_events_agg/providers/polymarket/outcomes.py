"""Build structured outcomes (label, price, probability, volume) for one market."""
import logging
import math
from collections.abc import Callable
from typing import Any, Protocol

from market_events_agg.providers.polymarket.models import Outcome
from market_events_agg.providers.polymarket.normalize import \
    normalize_probabilities
from market_events_agg.providers.polymarket.parsing import (
    decode_legacy, parse_clob_token_ids, parse_labels, parse_prices, to_float)

logger = logging.getLogger(__name__)

# A closed market's top outcome is only marked as winner at or above this
# price (0-100 scale). Overridable via settings.
WINNER_PRICE_THRESHOLD = 99.0

UNKNOWN_LABEL = "Unknown"


class OutcomeSource(Protocol):
    """Fields the builder reads; satisfied by both the raw DTO and Market."""

    id: Any
    outcomes: Any
    outcome_prices: Any
    clob_token_ids: Any
    volume: Any
    active: Any
    closed: Any
    icon: str | None
    condition_id: str | None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def short_label(label: str) -> str:
    return (label or "UNK")[:3].upper()


def market_volume(source: Any) -> float:
    """Market volume: string volume parsed, else volumeNum, else volume."""
    raw = getattr(source, "volume", None)
    if isinstance(raw, str):
        return to_float(raw) or 0.0
    return (
        to_float(getattr(source, "volume_num", None))
        or to_float(raw)
        or 0.0
    )


def complete_prices(prices: list[float], n_labels: int) -> list[float]:
    """Align prices with labels.

    A binary market that only reports its first price gets the complement as
    the second; otherwise prices are padded with zeros or truncated.
    """
    if n_labels == 2 and len(prices) == 1:
        return [prices[0], 100.0 - prices[0]]
    if len(prices) < n_labels:
        return prices + [0.0] * (n_labels - len(prices))
    return prices[:n_labels]


def detect_winner(
    prices: list[float],
    closed: bool | None,
    threshold: float = WINNER_PRICE_THRESHOLD,
) -> int | None:
    """Index of the winning outcome of a resolved market, or None.

    Only closed markets have winners. The first index holding the maximum
    price wins, and only if that price reaches the threshold; low-confidence
    resolutions are left unmarked.
    """
    if closed is not True or not prices:
        return None
    winner, best = 0, prices[0]
    for index, price in enumerate(prices[1:], start=1):
        if price > best:
            winner, best = index, price
    return winner if best >= threshold else None


def _uniform_outcomes(
    market: OutcomeSource, labels: list[str], token_ids: list[str]
) -> list[Outcome]:
    n = len(labels)
    share = 100 / n
    probabilities = normalize_probabilities([share] * n)
    volume = round_half_up(market_volume(market) / n)
    return [
        Outcome(
            label=label or UNKNOWN_LABEL,
            short_label=short_label(label),
            price=f"{share:.2f}",
            probability=probabilities[index],
            volume=volume,
            icon=market.icon,
            clob_token_id=token_ids[index] if index < len(token_ids) else None,
            condition_id=market.condition_id,
            active=bool(market.active),
            closed=bool(market.closed),
        )
        for index, label in enumerate(labels)
    ]


def _build(
    market: OutcomeSource,
    raw_labels: Any,
    raw_prices: Any,
    threshold: float,
) -> list[Outcome]:
    labels = parse_labels(raw_labels)
    if not labels:
        if raw_prices:
            logger.debug("Market %s has prices but no parsable outcome labels", market.id)
        return []

    token_ids = parse_clob_token_ids(market.clob_token_ids)
    prices = parse_prices(raw_prices)
    if not prices:
        logger.debug(
            "Market %s has no parsable prices; using uniform outcomes", market.id
        )
        return _uniform_outcomes(market, labels, token_ids)

    prices = complete_prices(prices, len(labels))
    total_price = sum(prices)
    volume = market_volume(market)
    if total_price > 0:
        volumes = [price / total_price * volume for price in prices]
    else:
        volumes = [volume / len(labels)] * len(labels)

    probabilities = normalize_probabilities(prices)
    winner = detect_winner(prices, market.closed, threshold)

    return [
        Outcome(
            label=label or UNKNOWN_LABEL,
            short_label=short_label(label),
            price=f"{prices[index]:.2f}",
            probability=probabilities[index],
            volume=round_half_up(volumes[index]),
            icon=market.icon,
            clob_token_id=token_ids[index] if index < len(token_ids) else None,
            condition_id=market.condition_id,
            is_winner=True if index == winner else None,
            active=bool(market.active),
            closed=bool(market.closed),
        )
        for index, label in enumerate(labels)
    ]


def build_outcomes(
    market: OutcomeSource, threshold: float = WINNER_PRICE_THRESHOLD
) -> list[Outcome]:
    """Build structured outcomes from a market's outcome/price fields.

    Args:
        market: Raw DTO or canonical Market.
        threshold: Winner price threshold on the 0-100 scale.

    Returns:
        One Outcome per label whose probabilities sum to 100 when any price is
        non-zero; [] when no labels could be parsed.
    """
    return _build(market, market.outcomes, market.outcome_prices, threshold)


def _from_legacy_fields(market: OutcomeSource, threshold: float) -> list[Outcome]:
    return _build(
        market,
        decode_legacy(market.outcomes),
        decode_legacy(market.outcome_prices),
        threshold,
    )


OutcomeStrategy = Callable[[OutcomeSource, float], list[Outcome]]

# Tried in order; the first non-empty result wins.
OUTCOME_STRATEGIES: tuple[OutcomeStrategy, ...] = (
    build_outcomes,
    _from_legacy_fields,
)


def build_structured_outcomes(
    market: OutcomeSource,
    threshold: float = WINNER_PRICE_THRESHOLD,
    strategies: tuple[OutcomeStrategy, ...] = OUTCOME_STRATEGIES,
) -> list[Outcome]:
    """Run outcome strategies in order until one yields outcomes."""
    for strategy in strategies:
        outcomes = strategy(market, threshold)
        if outcomes:
            return outcomes
    return []
