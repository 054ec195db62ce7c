"""
Write side of the weekly ad market: submitting, cancelling and re-ranking bids.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, List, NamedTuple, Optional

import psycopg

from core.ads.pricing import validate_bid
from core.ads.week import Week, today, week_for_date
from core.db import ads as bids_store
from core.db.listings import get_owned_listing
from core.errors import MarketRecalculationError, NotFound, PersistenceError

log = logging.getLogger("hsc.ads")

ADVERTISE_TYPE = "advertise"


class BidResult(NamedTuple):
    bid: Dict
    created: bool


def recalculate_week(week: Week, day: Optional[date] = None) -> List[Dict]:
    """Re-rank every active bid of `week`. Raises MarketRecalculationError on failure."""
    try:
        ranked = bids_store.recalculate_positions(week, day or today())
    except psycopg.Error as exc:
        log.exception("Position recalculation failed for week %s", week.start)
        raise MarketRecalculationError() from exc
    log.info("Recalculated positions for week %s: %d active bid(s)", week.start, len(ranked))
    return ranked


def submit_bid(
    user_id: int,
    listing_id: int,
    weekly_bid_amount,
    max_auto_bid=None,
    auto_renew: bool = True,
    now: Optional[datetime] = None,
    subscription_id: Optional[str] = None,
) -> BidResult:
    """
    Place or update the caller's bid for the current week.

    Resubmitting for the same listing and week updates the existing active
    bid in place; `created` says which happened.
    `subscription_id` ties the bid to the Stripe subscription paying for it.
    """
    terms = validate_bid(weekly_bid_amount, max_auto_bid)

    day = today(now)
    week = week_for_date(day)
    try:
        listing = get_owned_listing(listing_id, user_id, ADVERTISE_TYPE)
        if not listing:
            raise NotFound("Listing not found or not authorized")
        bid, created = bids_store.upsert_active_bid(
            listing_id,
            user_id,
            terms.weekly_bid_amount,
            terms.max_auto_bid,
            bool(auto_renew),
            week,
            stripe_subscription_id=subscription_id,
        )
    except psycopg.Error as exc:
        log.exception("Failed to store bid for listing %s", listing_id)
        raise PersistenceError() from exc

    ranked = recalculate_week(week, day)
    for row in ranked:
        if row["id"] == bid["id"]:
            bid["current_position"] = row["current_position"]
            break

    log.info(
        "%s bid %s for listing %s: %s/week (position %s)",
        "Created" if created else "Updated",
        bid["id"],
        listing_id,
        terms.weekly_bid_amount,
        bid.get("current_position"),
    )
    return BidResult(bid, created)


def cancel_bid(user_id: int, bid_id: int, now: Optional[datetime] = None) -> Dict:
    """Cancel one of the caller's bids. Someone else's bid is reported as not found."""
    try:
        bid = bids_store.cancel_bid(bid_id, user_id)
    except psycopg.Error as exc:
        log.exception("Failed to cancel bid %s", bid_id)
        raise PersistenceError() from exc
    if not bid:
        raise NotFound("Bid not found or not authorized")

    recalculate_week(week_for_date(bid["week_start"]), today(now))
    log.info("Cancelled bid %s for listing %s", bid_id, bid["listing_id"])
    return bid


def withdraw_listing_bids(listing_id: int, now: Optional[datetime] = None) -> List[date]:
    """
    Take a listing out of the market for good: its active and paused bids are
    cancelled with auto-renew off, and every affected week is re-ranked.
    Returns the affected week starts.
    """
    try:
        weeks = bids_store.set_listing_bid_status(
            listing_id, ["active", "paused"], "cancelled", disable_auto_renew=True
        )
    except psycopg.Error as exc:
        log.exception("Failed to withdraw bids for listing %s", listing_id)
        raise PersistenceError() from exc

    day = today(now)
    for week_start in weeks:
        recalculate_week(week_for_date(week_start), day)
    if weeks:
        log.info("Withdrew bids for listing %s from %d week(s)", listing_id, len(weeks))
    return weeks


def get_user_bids(user_id: int, include_expired: bool = False) -> List[Dict]:
    try:
        return bids_store.get_user_bids(user_id, include_expired)
    except psycopg.Error as exc:
        log.exception("Failed to load bids for user %s", user_id)
        raise PersistenceError() from exc


__all__ = [
    "ADVERTISE_TYPE",
    "BidResult",
    "recalculate_week",
    "submit_bid",
    "cancel_bid",
    "withdraw_listing_bids",
    "get_user_bids",
]
