"""Decoding of Polymarket outcome labels, prices and token ids.

The Gamma API is inconsistent about how it encodes array fields. The same
field can arrive as:

- a real JSON array: ``["Yes", "No"]``
- a JSON-encoded string: ``'["Yes", "No"]'``
- a single-element array wrapping a JSON string: ``['["Yes", "No"]']``
- missing or null

Each encoding has its own decoder; the decoders are tried in order and the
first one that yields a list wins. Anything else decodes to an empty list.
Nothing in this module raises.
"""
import json
import math
import re
from collections.abc import Callable
from typing import Any

_TOKEN_ID_PATTERN = re.compile(r"\d{70,}")

Decoder = Callable[[Any], list[Any] | None]


def to_float(value: Any) -> float | None:
    """Convert an upstream number or numeric string to float; None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _json_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return None


def _decode_array(raw: Any) -> list[Any] | None:
    """Real array, unless it is the single-element double-encoded form."""
    if not isinstance(raw, list):
        return None
    if len(raw) == 1 and isinstance(raw[0], str):
        inner = _json_loads(raw[0])
        if isinstance(inner, list):
            return None
    return raw


def _decode_wrapped_json(raw: Any) -> list[Any] | None:
    """Single-element array whose element is a JSON-encoded array."""
    if isinstance(raw, list) and len(raw) == 1 and isinstance(raw[0], str):
        inner = _json_loads(raw[0])
        if isinstance(inner, list):
            return inner
    return None


def _decode_json_string(raw: Any) -> list[Any] | None:
    """Bare JSON string holding an array (or a string holding that string)."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    decoded = _json_loads(raw)
    if isinstance(decoded, str):
        decoded = _json_loads(decoded)
    return decoded if isinstance(decoded, list) else None


def _decode_scalar_string(raw: Any) -> list[Any] | None:
    """A lone numeric string, e.g. "0.42", is a one-element price list."""
    if isinstance(raw, str) and to_float(raw) is not None:
        return [raw]
    return None


DECODERS: tuple[Decoder, ...] = (
    _decode_array,
    _decode_wrapped_json,
    _decode_json_string,
    _decode_scalar_string,
)


def decode_array(raw: Any) -> list[Any]:
    """Run the decoder chain; first list wins, otherwise []."""
    if raw is None:
        return []
    for decoder in DECODERS:
        values = decoder(raw)
        if values is not None:
            return values
    return []


def _price_from(value: Any) -> float:
    number = to_float(value)
    if number is None:
        return 0.0
    return min(100.0, max(0.0, number * 100))


def parse_prices(raw: Any) -> list[float]:
    """Parse outcome prices into percentages.

    Upstream prices are decimal fractions (0.01 == 1%). Each entry is scaled
    by 100 and clamped to [0, 100]; non-numeric entries become 0.

    Args:
        raw: outcomePrices in any of the known encodings.

    Returns:
        Prices on the 0-100 scale, or [] when nothing could be decoded.
    """
    return [_price_from(value) for value in decode_array(raw)]


def parse_labels(raw: Any) -> list[str]:
    """Parse outcome labels. None entries become empty strings."""
    return ["" if value is None else str(value) for value in decode_array(raw)]


def parse_clob_token_ids(raw: Any) -> list[str]:
    """Parse CLOB token ids.

    Token ids are 70+ digit integers. Besides the usual encodings the upstream
    sometimes sends a Python-style repr with single quotes; as a last resort
    the digit runs are pulled out of the raw text.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        values = decode_array(raw)
        if not values:
            values = decode_array(raw.replace("'", '"'))
        if not values:
            values = _TOKEN_ID_PATTERN.findall(raw)
    else:
        values = decode_array(raw)
    return [str(value) for value in values if value not in (None, "")]


def decode_legacy(raw: Any) -> Any:
    """JSON-decode a legacy string field, unwrapping one extra string level.

    Returns the decoded list when decoding succeeds, otherwise the value
    unchanged so it can be passed through verbatim.
    """
    if not isinstance(raw, str):
        return raw
    decoded = _json_loads(raw)
    if isinstance(decoded, str):
        decoded = _json_loads(decoded)
    return decoded if isinstance(decoded, list) else raw
