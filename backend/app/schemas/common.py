"""Shared schema definitions."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, PlainSerializer

from ..money import parse_money


def _coerce_money(value: Any) -> Decimal:
    return parse_money(value)


def _coerce_money_total(value: Any) -> Decimal:
    return parse_money(value, bounded=False)


# Parsed into a two-decimal ``Decimal`` on the way in, emitted as a JSON number.
Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Sums of stored amounts, which may exceed what a single column holds.
MoneyTotal = Annotated[
    Decimal,
    BeforeValidator(_coerce_money_total),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by mutating endpoints."""

    message: str


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    message: str
    error: str
