"""
Listing CRUD and interaction tracking.
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request

from app.auth_utils import get_current_user, require_admin, require_user
from app.schemas import ListingRequest, TrackRequest
from app.security import client_ip
from core.ads.bidding import ADVERTISE_TYPE, withdraw_listing_bids
from core.db.listings import (
    create_listing,
    delete_listing,
    get_listing,
    get_listing_analytics,
    list_listings,
    record_listing_event,
    update_listing,
)
from core.errors import NotFound, ValidationError
from core.listings import EVENT_TYPES, browser_name, device_type, validate_listing

log = logging.getLogger("hsc.listings")

router = APIRouter(prefix="/api/listings")


def _editable_listing(listing_id: int, user: Dict) -> Dict:
    listing = get_listing(listing_id)
    if not listing or (listing["user_id"] != user["id"] and user.get("role") != "admin"):
        raise NotFound("Listing not found or not authorized")
    return listing


@router.get("")
def search_listings(
    type: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    private: Optional[bool] = None,
    user_id: Optional[int] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
):
    listings = list_listings(
        listing_type=type,
        category=category,
        status=status,
        is_private=private,
        user_id=user_id,
        min_price=min_price,
        max_price=max_price,
        search=(search or "").strip() or None,
        limit=limit,
        offset=offset,
    )
    return {
        "listings": listings,
        "pagination": {"limit": min(max(limit, 1), 100), "offset": max(offset, 0), "count": len(listings)},
    }


@router.post("", status_code=201)
def new_listing(payload: ListingRequest, user: Dict = Depends(require_user)):
    fields = validate_listing(payload.model_dump())
    listing = create_listing(user["id"], fields)
    log.info("Listing %s created by user %s", listing["id"], user["id"])
    return {"listing": listing}


@router.get("/{listing_id}")
def show_listing(listing_id: int):
    listing = get_listing(listing_id)
    if not listing:
        raise NotFound("Listing not found")
    return {"listing": listing}


@router.put("/{listing_id}")
def edit_listing(listing_id: int, payload: ListingRequest, user: Dict = Depends(require_user)):
    current = _editable_listing(listing_id, user)
    fields = validate_listing(payload.model_dump())
    listing = update_listing(listing_id, fields)
    if not listing:
        raise NotFound("Listing not found or not authorized")
    if current["type"] == ADVERTISE_TYPE and listing["type"] != ADVERTISE_TYPE:
        withdraw_listing_bids(listing_id)
    log.info("Listing %s updated by user %s", listing_id, user["id"])
    return {"listing": listing}


@router.delete("/{listing_id}")
def remove_listing(listing_id: int, user: Dict = Depends(require_user)):
    _editable_listing(listing_id, user)
    withdraw_listing_bids(listing_id)
    delete_listing(listing_id)
    log.info("Listing %s deleted by user %s", listing_id, user["id"])
    return {"success": True, "message": "Listing deleted successfully"}


@router.post("/{listing_id}/track")
def track_listing(listing_id: int, payload: TrackRequest, request: Request):
    if payload.event_type not in EVENT_TYPES:
        raise ValidationError(f"event_type must be one of: {', '.join(EVENT_TYPES)}")

    user, _ = get_current_user(request)
    ua = request.headers.get("user-agent", "")
    counters = record_listing_event(
        listing_id,
        payload.event_type,
        user_id=user["id"] if user else None,
        session_id=payload.session_id,
        ip_address=client_ip(request),
        user_agent=ua,
        referrer=payload.referrer or request.headers.get("referer"),
        device_type=device_type(ua),
        browser_name=browser_name(ua),
        time_on_listing=payload.time_on_listing,
        scroll_depth=payload.scroll_depth,
    )
    if counters is None:
        raise NotFound("Listing not found")
    return {
        "success": True,
        "event_type": payload.event_type,
        "clicks": counters["clicks"],
        "impression_count": counters["impression_count"],
    }


@router.get("/{listing_id}/track")
def listing_analytics(listing_id: int, days: int = 7, admin: Dict = Depends(require_admin)):
    report = get_listing_analytics(listing_id, days=max(1, min(days, 90)))
    if not report:
        raise NotFound("Listing not found")
    return {"success": True, **report}
