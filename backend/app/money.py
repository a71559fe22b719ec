"""Canonical parsing of monetary values."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENTS = Decimal("0.01")
# Largest magnitude a Numeric(12, 2) column holds.
MAX_MONEY = Decimal("9999999999.99")
_PLAIN_NUMBER = re.compile(r"^[+-]?\d+(\.\d+)?$")


def parse_money(value: Any, *, field: str = "amount", bounded: bool = True) -> Decimal:
    """Convert ``value`` into a two-decimal ``Decimal``.

    Accepts ints, floats, decimals and plain numeric strings such as ``"1500"``
    or ``"1500.50"``. Display-formatted strings (``"1.500,00"``, ``"1,500"``)
    are rejected instead of guessed.
    Unless ``bounded`` is false, values a ``Numeric(12, 2)`` column cannot
    hold are rejected as well.
    """

    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field} must be a number")
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not _PLAIN_NUMBER.match(stripped):
            raise ValueError(f"{field} must be a plain decimal number, got {value!r}")
        parsed = Decimal(stripped)
    else:
        raise ValueError(f"{field} must be a number")

    if not parsed.is_finite():
        raise ValueError(f"{field} must be a finite number")
    try:
        quantized = parsed.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"{field} is out of range") from exc
    if bounded and abs(quantized) > MAX_MONEY:
        raise ValueError(f"{field} is out of range")
    return quantized
