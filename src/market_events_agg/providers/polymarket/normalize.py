"""Largest-remainder (Hare-Niemeyer) rounding of percentages."""
import math

TOTAL = 100

# Remainders closer than this are treated as equal and broken by index.
_REMAINDER_PRECISION = 4


def _apportion(quotas: list[float]) -> tuple[list[int], int]:
    floored = [math.floor(q) for q in quotas]
    return floored, TOTAL - sum(floored)


def normalize_probabilities(values: list[float]) -> list[int]:
    """Round percentages to integers that sum to exactly 100.

    Every value is floored, then the shortfall is handed out one point at a
    time to the entries with the largest fractional remainder (lower index
    first on ties). Inputs that do not already total ~100, such as a lone
    price or an over-round book, are rescaled to 100 first.

    Args:
        values: Percentages on the 0-100 scale.

    Returns:
        Integers summing to 100; all zeros for all-zero input; [] for [].
    """
    if not values:
        return []
    values = [max(0.0, v) for v in values]
    total = sum(values)
    if total <= 0:
        return [0] * len(values)

    quotas = list(values)
    floored, shortfall = _apportion(quotas)
    if not 0 <= shortfall <= len(quotas):
        quotas = [v * TOTAL / total for v in values]
        floored, shortfall = _apportion(quotas)

    order = sorted(
        range(len(quotas)),
        key=lambda i: (-round(quotas[i] - floored[i], _REMAINDER_PRECISION), i),
    )
    for k in range(shortfall):
        floored[order[k % len(order)]] += 1
    return floored
