"""
Weekly ad market endpoints: bids, standings and display slots.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth_utils import require_user
from app.schemas import BidRequest
from core.ads.bidding import cancel_bid, get_user_bids, submit_bid
from core.ads.market import get_market_state, get_slots

router = APIRouter(prefix="/api")


@router.get("/ad-bids")
def list_my_bids(include_expired: bool = False, user: Dict = Depends(require_user)):
    return {"success": True, "bids": get_user_bids(user["id"], include_expired)}


@router.post("/ad-bids")
def place_bid(payload: BidRequest, user: Dict = Depends(require_user)):
    if payload.listing_id is None or payload.weekly_bid_amount in (None, ""):
        return JSONResponse({"error": "listing_id and weekly_bid_amount are required"}, status_code=400)

    result = submit_bid(
        user["id"],
        payload.listing_id,
        payload.weekly_bid_amount,
        max_auto_bid=payload.max_auto_bid,
        auto_renew=payload.auto_renew,
    )
    return {
        "success": True,
        "bid": result.bid,
        "created": result.created,
        "message": "Bid placed successfully" if result.created else "Bid updated successfully",
    }


@router.delete("/ad-bids")
def remove_bid(bid_id: Optional[int] = None, user: Dict = Depends(require_user)):
    if bid_id is None:
        return JSONResponse({"error": "bid_id is required"}, status_code=400)
    bid = cancel_bid(user["id"], bid_id)
    return {"success": True, "bid": bid, "message": "Bid cancelled successfully"}


@router.get("/ad-positions")
def ad_positions(week_start: Optional[str] = None):
    return {"success": True, "market_state": get_market_state(week_start)}


@router.get("/weekly-ads/slots")
def weekly_ad_slots(date: Optional[str] = None, position: Optional[int] = None):
    return {"success": True, **get_slots(date, position)}
