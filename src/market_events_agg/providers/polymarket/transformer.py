"""Event transformation and outcome aggregation.

Turns raw Gamma API events into canonical Events. The interesting part is
``groupedOutcomes``: a single sorted outcome list for the whole event, built
either by flattening every active market (live events) or from the single
best market (resolved events, or when flattening finds nothing).
"""
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from market_events_agg.providers.core.exceptions import (AppError,
                                                         BatchTransformError,
                                                         ErrorCode,
                                                         TransformationError)
from market_events_agg.providers.polymarket.dto import (PolymarketEventDTO,
                                                        PolymarketTagDTO)
from market_events_agg.providers.polymarket.grouping import group_events_by_id
from market_events_agg.providers.polymarket.mapper import transform_market
from market_events_agg.providers.polymarket.models import (Event, Market,
                                                           Outcome, Tag)
from market_events_agg.providers.polymarket.normalize import \
    normalize_probabilities
from market_events_agg.providers.polymarket.outcomes import (
    WINNER_PRICE_THRESHOLD, build_outcomes, complete_prices, detect_winner,
    round_half_up, short_label)
from market_events_agg.providers.polymarket.parsing import (parse_prices,
                                                            to_float)

logger = logging.getLogger(__name__)


def _is_live(market: Market) -> bool:
    return market.active and not market.closed


def _by_probability(outcomes: Iterable[Outcome]) -> list[Outcome]:
    return sorted(outcomes, key=lambda o: o.probability, reverse=True)


def _attach_market(outcome: Outcome, market: Market) -> Outcome:
    return outcome.model_copy(
        update={
            "market_id": market.id,
            "market_question": market.question,
            "active": market.active,
            "closed": market.closed,
        }
    )


def _group_item_outcome(market: Market, threshold: float) -> Outcome:
    """The single outcome a group-item market contributes, labelled by its title."""
    if market.structured_outcomes:
        first = market.structured_outcomes[0]
        label = market.group_item_title or first.label
        return first.model_copy(
            update={
                "label": label,
                "short_label": short_label(label),
                "volume": round_half_up(market.volume) or first.volume,
                "icon": market.icon or first.icon,
                "group_item_threshold": market.group_item_threshold,
                "market_id": market.id,
                "market_question": market.question,
                "active": market.active,
                "closed": market.closed,
            }
        )

    # No structured outcomes: fall back to the Yes price
    prices = parse_prices(market.outcome_prices)
    if len(prices) == 1:
        prices = complete_prices(prices, 2)
    yes_price = prices[0] if prices else 0.0
    probabilities = normalize_probabilities(prices)
    winner = detect_winner(prices, market.closed, threshold)
    label = market.group_item_title or market.question or "Unknown"
    return Outcome(
        label=label,
        short_label=short_label(label),
        price=f"{yes_price:.2f}",
        probability=probabilities[0] if probabilities else 0,
        volume=round_half_up(market.volume),
        icon=market.icon,
        clob_token_id=market.clob_token_ids[0] if market.clob_token_ids else None,
        condition_id=market.condition_id,
        group_item_threshold=market.group_item_threshold,
        is_winner=True if winner == 0 else None,
        market_id=market.id,
        market_question=market.question,
        active=market.active,
        closed=market.closed,
    )


def aggregate_outcomes(markets: list[Market], threshold: float) -> list[Outcome]:
    """Flatten every live market into one outcome list, by probability desc.

    Group-item markets contribute one outcome each; plain markets contribute
    all of theirs.
    """
    aggregated: list[Outcome] = []
    for market in markets:
        if market.is_group_item:
            aggregated.append(_group_item_outcome(market, threshold))
        else:
            aggregated.extend(
                _attach_market(outcome, market)
                for outcome in market.structured_outcomes
            )
    return _by_probability(o for o in aggregated if o.active and not o.closed)


def best_market_outcomes(
    markets: list[Market], threshold: float, live_only: bool
) -> list[Outcome]:
    """Outcomes of the most liquid market that has any (volume breaks ties)."""
    ranked = sorted(markets, key=lambda m: (m.liquidity, m.volume), reverse=True)

    outcomes: list[Outcome] = []
    for market in ranked:
        if market.structured_outcomes:
            outcomes = [_attach_market(o, market) for o in market.structured_outcomes]
            break
    else:
        for market in ranked:
            outcomes = [
                _attach_market(o, market) for o in build_outcomes(market, threshold)
            ]
            if outcomes:
                break

    if live_only:
        outcomes = [o for o in outcomes if o.active and not o.closed]
    return _by_probability(outcomes)


def collapse_resolved_binary(outcomes: list[Outcome]) -> list[Outcome]:
    """A resolved Yes/No question shows only its winning side."""
    labels = {o.label.lower() for o in outcomes}
    if len(outcomes) == 2 and labels == {"yes", "no"}:
        winners = [o for o in outcomes if o.is_winner]
        if winners:
            return winners
    return outcomes


def _transform_tags(tags: list[PolymarketTagDTO]) -> list[Tag]:
    return [
        Tag(id=tag.id, label=tag.label, slug=tag.slug)
        for tag in tags
        if tag.id and tag.label and tag.slug
    ]


def _total(markets: list[Market], field: str) -> float:
    return sum(getattr(m, field) or 0.0 for m in markets)


def _transform_markets(event: PolymarketEventDTO, threshold: float) -> list[Market]:
    markets: list[Market] = []
    for raw in event.markets:
        try:
            market = transform_market(raw, threshold)
        except TransformationError as exc:
            logger.warning("Dropping market from event %s: %s", event.id, exc)
            continue
        if market.archived or not (market.active or market.closed):
            continue
        markets.append(market)
    return markets


def _build_event(event: PolymarketEventDTO, threshold: float) -> Event:
    markets = _transform_markets(event, threshold)
    has_group_items = any(m.is_group_item for m in markets)
    live_markets = [m for m in markets if _is_live(m)]
    is_resolved = bool(event.closed) or (
        bool(markets) and all(m.closed or not m.active for m in markets)
    )

    grouped: list[Outcome] | None = None
    if live_markets and not event.closed:
        grouped = aggregate_outcomes(live_markets, threshold)
        logger.debug(
            "Aggregated %d outcomes from %d markets for event %s",
            len(grouped), len(live_markets), event.id,
        )
    if not grouped:
        candidates = markets if is_resolved else live_markets
        if candidates:
            grouped = best_market_outcomes(
                candidates, threshold, live_only=not is_resolved
            )
        if grouped == [] and live_markets:
            logger.warning(
                "Event %s has %d live markets but no outcomes",
                event.id, len(live_markets),
            )

    if grouped and is_resolved and not has_group_items:
        grouped = collapse_resolved_binary(grouped)

    outcome_count = len(grouped or [])
    competitive = event.competitive
    if competitive is None:
        competitive = _total(markets, "competitive") / len(markets) if markets else 0.0

    return Event(
        id=event.id,
        title=event.title or "",
        slug=event.slug or "",
        description=event.description,
        image=event.image or event.icon,
        icon=event.icon or event.image,
        total_volume=to_float(event.volume) or _total(markets, "volume"),
        volume_24hr=event.volume_24hr or _total(markets, "volume_24hr"),
        volume_1wk=event.volume_1wk or _total(markets, "volume_1wk"),
        volume_1mo=event.volume_1mo or _total(markets, "volume_1mo"),
        volume_1yr=event.volume_1yr or _total(markets, "volume_1yr"),
        liquidity=(
            to_float(event.liquidity)
            or _total(markets, "liquidity")
            or event.liquidity_clob
            or 0.0
        ),
        open_interest=event.open_interest,
        competitive=competitive,
        active=bool(event.active),
        closed=bool(event.closed),
        archived=bool(event.archived),
        restricted=event.restricted,
        featured=event.featured,
        comment_count=event.comment_count,
        markets=sorted(markets, key=lambda m: m.volume, reverse=True),
        tags=_transform_tags(event.tags),
        start_date=event.start_date or event.start_time,
        end_date=event.end_date,
        created_at=event.created_at or event.creation_date,
        updated_at=event.updated_at,
        closed_time=next((m.closed_time for m in markets if m.closed_time), None),
        has_group_items=has_group_items,
        grouped_outcomes=grouped,
        is_binary_outcome=True if outcome_count == 2 else None,
        is_multi_outcome=True if outcome_count > 2 else None,
        is_resolved=is_resolved,
    )


def transform_event(
    raw: PolymarketEventDTO | dict[str, Any],
    winner_threshold: float = WINNER_PRICE_THRESHOLD,
) -> Event:
    """Transform one raw event, aggregating its outcomes.

    Markets that fail to transform are logged and dropped; the event itself
    only fails on structural problems.

    Raises:
        TransformationError: TRANSFORMATION_ERROR when the event cannot be built.
    """
    try:
        event = (
            raw
            if isinstance(raw, PolymarketEventDTO)
            else PolymarketEventDTO.model_validate(raw)
        )
        if not event.id:
            raise ValueError("event has no id")
        return _build_event(event, winner_threshold)
    except AppError:
        raise
    except (ValidationError, ValueError, TypeError, AttributeError) as exc:
        event_id = getattr(raw, "id", None) or (
            raw.get("id") if isinstance(raw, dict) else None
        )
        raise TransformationError(
            ErrorCode.TRANSFORMATION_ERROR,
            f"Failed to transform event {event_id}: {exc}",
        ) from exc


def transform_events(
    batch: Any,
    winner_threshold: float = WINNER_PRICE_THRESHOLD,
) -> list[Event]:
    """Group, transform and sort a batch of raw events.

    Args:
        batch: List of raw event dicts (or DTOs) from the Gamma API.
        winner_threshold: Winner price threshold on the 0-100 scale.

    Returns:
        Transformed events sorted by 24h volume, descending. Events that fail
        validation or transformation are logged and skipped.

    Raises:
        BatchTransformError: batch is not a list.
    """
    if not isinstance(batch, list):
        raise BatchTransformError(
            ErrorCode.TRANSFORMATION_ERROR,
            f"Expected a list of events, got {type(batch).__name__}",
        )

    dtos: list[PolymarketEventDTO] = []
    for item in batch:
        if isinstance(item, PolymarketEventDTO):
            dtos.append(item)
            continue
        try:
            dtos.append(PolymarketEventDTO.model_validate(item))
        except ValidationError as exc:
            item_id = item.get("id") if isinstance(item, dict) else None
            logger.warning("Skipping invalid event %s: %s", item_id, exc)

    events: list[Event] = []
    for dto in group_events_by_id(dtos):
        try:
            events.append(transform_event(dto, winner_threshold))
        except TransformationError as exc:
            logger.error("Skipping event %s: %s", dto.id, exc)

    events.sort(key=lambda e: e.volume_24hr, reverse=True)
    return events
