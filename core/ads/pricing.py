"""
Weekly ad pricing rules and bid validation.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NamedTuple, Optional

from core.errors import InvalidAmount, InvalidAutoBidCeiling

BASE_WEEKLY_RATE = Decimal("5.00")
COMPETITIVE_INCREMENT = Decimal("5.00")
SLOT_COUNT = 5
CURRENCY = "usd"

_CENT = Decimal("0.01")


class BidTerms(NamedTuple):
    weekly_bid_amount: Decimal
    max_auto_bid: Optional[Decimal]


def to_money(value) -> Decimal:
    """Coerce a number or numeric string to a 2-place Decimal. Raises InvalidOperation."""
    if isinstance(value, bool):
        raise InvalidOperation("booleans are not amounts")
    if isinstance(value, float):
        value = str(value)
    amount = Decimal(value)
    if not amount.is_finite():
        raise InvalidOperation("amount must be finite")
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def validate_bid(weekly_bid_amount, max_auto_bid=None) -> BidTerms:
    """
    Check a proposed weekly bid. Pure: no I/O.

    Raises InvalidAmount when the amount is missing, non-numeric or below the
    base rate, and InvalidAutoBidCeiling when a ceiling is given below it.
    """
    try:
        raw = Decimal(str(weekly_bid_amount)) if weekly_bid_amount is not None else None
        amount = to_money(weekly_bid_amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount("weekly_bid_amount must be a number")
    if raw is None or raw < BASE_WEEKLY_RATE:
        raise InvalidAmount()

    ceiling = None
    if max_auto_bid is not None and max_auto_bid != "":
        try:
            ceiling = to_money(max_auto_bid)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAutoBidCeiling("max_auto_bid must be a number")
        if ceiling < amount:
            raise InvalidAutoBidCeiling()

    return BidTerms(amount, ceiling)


def validate_payment_amount(amount) -> bool:
    """Checkout amounts start at the base rate and move in whole increments."""
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        return False
    return value >= BASE_WEEKLY_RATE and value % COMPETITIVE_INCREMENT == 0


def price_to_beat(current_top_bid) -> Decimal:
    """Minimum weekly amount that takes the top position."""
    top = to_money(current_top_bid or 0)
    if top <= 0:
        return BASE_WEEKLY_RATE
    return top + COMPETITIVE_INCREMENT


competitive_bid_amount = price_to_beat


__all__ = [
    "BASE_WEEKLY_RATE",
    "COMPETITIVE_INCREMENT",
    "SLOT_COUNT",
    "CURRENCY",
    "BidTerms",
    "to_money",
    "validate_bid",
    "validate_payment_amount",
    "price_to_beat",
    "competitive_bid_amount",
]
