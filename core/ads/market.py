"""
Read side of the weekly ad market: current standings and display slots.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, List, Optional

import psycopg

from core.ads.pricing import price_to_beat, to_money
from core.ads.slots import build_slots, pricing_block, quote_slot, rank_bids, slot_summary
from core.ads.week import Week, parse_week_start, today, week_for_date
from core.db.ads import get_active_bids
from core.errors import PersistenceError

log = logging.getLogger("hsc.ads")


def _position_entry(bid: Dict) -> Dict:
    return {
        "id": bid["id"],
        "listing_id": bid["listing_id"],
        "user_id": bid["user_id"],
        "weekly_bid_amount": to_money(bid["weekly_bid_amount"]),
        "max_auto_bid": to_money(bid["max_auto_bid"]) if bid.get("max_auto_bid") is not None else None,
        "auto_renew": bid.get("auto_renew"),
        "current_position": bid.get("current_position"),
        "week_start": bid["week_start"],
        "week_end": bid["week_end"],
        "status": bid["status"],
        "created_at": bid.get("created_at"),
        "listing": {
            "id": bid["listing_id"],
            "title": bid.get("listing_title"),
            "type": bid.get("listing_type"),
            "featured_image_url": bid.get("listing_featured_image_url"),
            "basic_description": bid.get("listing_basic_description"),
        },
    }


def _read_active_bids(week: Week, day: date) -> List[Dict]:
    try:
        return get_active_bids(week, day)
    except psycopg.Error as exc:
        log.exception("Failed to read active bids for week %s", week.start)
        raise PersistenceError() from exc


def get_market_state(week_start: Optional[str] = None, now: Optional[datetime] = None) -> Dict:
    """
    Snapshot of one week's market.

    Top bid and count are derived from the same row set as `positions`, so the
    three always agree with each other.
    """
    week = parse_week_start(week_start) if week_start else week_for_date(today(now))
    rows = _read_active_bids(week, today(now))

    top_bid = max((to_money(r["weekly_bid_amount"]) for r in rows), default=to_money(0))
    return {
        "current_top_bid": top_bid,
        "price_to_beat": price_to_beat(top_bid),
        "total_active_bids": len(rows),
        "positions": [_position_entry(r) for r in rows],
        "week_start": week.start,
        "week_end": week.end,
    }


def get_slots(for_date: Optional[str] = None, position: Optional[int] = None, now: Optional[datetime] = None) -> Dict:
    """Display slots for the week containing `for_date`, with an optional quote for `position`."""
    week = parse_week_start(for_date) if for_date else week_for_date(today(now))
    ranked = rank_bids(_read_active_bids(week, today(now)))
    slots = build_slots(ranked)

    result = {
        "week_start": week.start,
        "week_end": week.end,
        "slots": slots,
        "summary": slot_summary(slots),
        "pricing": pricing_block(),
    }
    if position is not None:
        result["quote"] = quote_slot(slots, position)
    return result


__all__ = ["get_market_state", "get_slots"]
