"""
Weekly ad market rules. Services live in core.ads.market and core.ads.bidding.
"""
from core.ads.week import Week, parse_week_start, today, week_bounds, week_for_date
from core.ads.pricing import (
    BASE_WEEKLY_RATE,
    COMPETITIVE_INCREMENT,
    SLOT_COUNT,
    competitive_bid_amount,
    price_to_beat,
    validate_bid,
    validate_payment_amount,
)
from core.ads.slots import build_slots, quote_slot, rank_bids, slot_summary

__all__ = [
    "Week",
    "parse_week_start",
    "today",
    "week_bounds",
    "week_for_date",
    "BASE_WEEKLY_RATE",
    "COMPETITIVE_INCREMENT",
    "SLOT_COUNT",
    "competitive_bid_amount",
    "price_to_beat",
    "validate_bid",
    "validate_payment_amount",
    "build_slots",
    "quote_slot",
    "rank_bids",
    "slot_summary",
]
