"""
Amounts -- The one sanctioned path from raw input to a monetary integer.

Responsibility:
    Converts spreadsheet cells, form strings and stored document values into
    non-negative whole-won integers, and provides the Decimal rounding
    helpers the engines use.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - coerce_amount never raises.  Missing, non-numeric, non-finite or
      negative input becomes 0.
    - Fractions are truncated toward zero (whole won only).
    - All arithmetic is Decimal; floats are converted through ``str`` so
      binary artefacts never leak into amounts.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_IGNORED_CHARS = (",", " ", " ", "\t", "원", "₩")


def to_decimal(value: Any) -> Decimal | None:
    """Parse ``value`` into a finite Decimal, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        for ch in _IGNORED_CHARS:
            text = text.replace(ch, "")
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def coerce_amount(value: Any) -> int:
    """Convert any raw input into a non-negative whole-won amount.

    >>> coerce_amount("1,234")
    1234
    >>> coerce_amount("abc")
    0
    >>> coerce_amount(None)
    0
    """
    parsed = to_decimal(value)
    if parsed is None or parsed <= 0:
        return 0
    return int(parsed.to_integral_value(rounding=ROUND_DOWN))


def truncate_to_unit(value: Decimal, unit: int) -> int:
    """Floor ``value`` to a multiple of ``unit`` (e.g. 10 won)."""
    step = Decimal(unit)
    return int((value / step).to_integral_value(rounding=ROUND_FLOOR) * step)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole unit, halves away from zero."""
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))
