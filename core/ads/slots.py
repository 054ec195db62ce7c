"""
Ranking and slot allocation for the weekly business-ad row.

Everything here is pure: callers pass the active bids for one week (dicts as
returned by the bids store) and get rankings, slots and quotes back.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from core.ads.pricing import BASE_WEEKLY_RATE, COMPETITIVE_INCREMENT, CURRENCY, SLOT_COUNT, to_money
from core.errors import InvalidPosition

SLOT_DESCRIPTIONS = {
    1: "Top position - highest visibility",
    2: "Second position - high visibility",
    3: "Third position - good visibility",
    4: "Fourth position - moderate visibility",
    5: "Fifth position - basic visibility",
}


def _rank_key(bid: Dict):
    created = bid.get("created_at")
    return (
        -to_money(bid.get("weekly_bid_amount") or 0),
        (0, created) if created is not None else (1, 0),
        bid.get("id") or 0,
    )


def rank_bids(bids: Iterable[Dict]) -> List[Dict]:
    """
    Rank bids 1..N: highest weekly amount first, ties to the earliest
    submission, then the lowest id. Returns copies with `current_position` set.
    """
    ranked = []
    for position, bid in enumerate(sorted(bids, key=_rank_key), start=1):
        row = dict(bid)
        row["current_position"] = position
        ranked.append(row)
    return ranked


def vacant_slot_price(occupied_count: int) -> Decimal:
    return BASE_WEEKLY_RATE + COMPETITIVE_INCREMENT * occupied_count


def bump_price(occupant: Dict) -> Decimal:
    return to_money(occupant["weekly_bid_amount"]) + COMPETITIVE_INCREMENT


def build_slots(ranked: List[Dict], slot_count: int = SLOT_COUNT) -> List[Dict]:
    """Map ranked bids onto the fixed display slots. Ranks past the last slot are unplaced."""
    occupants = ranked[:slot_count]
    occupied_count = len(occupants)

    slots = []
    for position in range(1, slot_count + 1):
        occupant = occupants[position - 1] if position <= occupied_count else None
        if occupant:
            price = bump_price(occupant)
            current = {
                "bid_id": occupant.get("id"),
                "listing_id": occupant.get("listing_id"),
                "user_id": occupant.get("user_id"),
                "listing_title": occupant.get("listing_title"),
                "weekly_price": to_money(occupant["weekly_bid_amount"]),
            }
        else:
            price = vacant_slot_price(occupied_count)
            current = None
        slots.append(
            {
                "position": position,
                "is_available": occupant is None,
                "base_price": BASE_WEEKLY_RATE,
                "bump_price": price,
                "current_occupant": current,
                "position_name": f"Row {position}",
                "description": SLOT_DESCRIPTIONS.get(position, f"Position {position}"),
            }
        )
    return slots


def slot_summary(slots: List[Dict]) -> Dict:
    available = [s for s in slots if s["is_available"]]
    occupied = [s for s in slots if not s["is_available"]]
    market_rate = vacant_slot_price(len(occupied)) if available else min(s["bump_price"] for s in occupied)
    return {
        "total_slots": len(slots),
        "available_slots": len(available),
        "occupied_slots": len(occupied),
        "lowest_available_position": available[0]["position"] if available else None,
        "highest_bump_position": occupied[0]["position"] if occupied else None,
        "base_weekly_price": BASE_WEEKLY_RATE,
        "current_market_rate": market_rate,
    }


def quote_slot(slots: List[Dict], target_position: Optional[int]) -> Dict:
    """Price for a new entrant targeting one slot."""
    try:
        position = int(target_position)
    except (TypeError, ValueError):
        raise InvalidPosition()
    if position < 1 or position > len(slots):
        raise InvalidPosition()
    slot = slots[position - 1]
    return {
        "position": position,
        "is_bump": not slot["is_available"],
        "weekly_price": slot["bump_price"],
        "currency": CURRENCY,
    }


def pricing_block() -> Dict:
    return {
        "base_weekly_rate": BASE_WEEKLY_RATE,
        "competitive_increment": COMPETITIVE_INCREMENT,
        "currency": CURRENCY,
        "billing_cycle": "weekly",
    }


__all__ = [
    "SLOT_DESCRIPTIONS",
    "rank_bids",
    "vacant_slot_price",
    "bump_price",
    "build_slots",
    "slot_summary",
    "quote_slot",
    "pricing_block",
]
