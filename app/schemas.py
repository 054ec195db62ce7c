"""
Request bodies for the JSON API.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class MagicLinkRequest(BaseModel):
    email: str = Field(..., max_length=254)
    context: Optional[str] = None


class BidRequest(BaseModel):
    listing_id: Optional[int] = None
    # Left loose so amount errors come back as the market's own messages.
    weekly_bid_amount: Any = None
    max_auto_bid: Any = None
    auto_renew: bool = True


class ListingRequest(BaseModel):
    type: Optional[str] = None
    category: Optional[str] = None
    title: Optional[str] = None
    price: Any = None
    basic_description: Optional[str] = None
    detailed_description: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    featured_image_url: Optional[str] = None
    is_private: bool = False
    status: Optional[str] = None


class TrackRequest(BaseModel):
    event_type: Optional[str] = None
    session_id: Optional[str] = Field(None, max_length=128)
    referrer: Optional[str] = None
    time_on_listing: Optional[int] = None
    scroll_depth: Optional[int] = Field(None, ge=0, le=100)


class CheckoutRequest(BaseModel):
    listing_id: Optional[int] = None
    weekly_amount: Any = None
    payment_type: Optional[str] = None
    auto_renew: bool = False


class PaymentConfirmRequest(BaseModel):
    session_id: Optional[str] = None


class AdminDashboardAction(BaseModel):
    action: Optional[str] = None


class AdminUserAction(BaseModel):
    action: Optional[str] = None
    user_ids: List[int] = Field(default_factory=list)
