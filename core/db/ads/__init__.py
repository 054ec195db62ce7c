"""
Ad market storage helpers.
"""
from core.db.ads.bids_store import (
    upsert_active_bid,
    get_bid,
    cancel_bid,
    get_user_bids,
    get_active_bids,
    recalculate_positions,
    set_listing_bid_status,
    set_subscription_bid_status,
)

__all__ = [
    "upsert_active_bid",
    "get_bid",
    "cancel_bid",
    "get_user_bids",
    "get_active_bids",
    "recalculate_positions",
    "set_listing_bid_status",
    "set_subscription_bid_status",
]
