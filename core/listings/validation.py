"""
Listing field validation.
"""
from __future__ import annotations

from decimal import InvalidOperation
from typing import Dict

from core.ads.pricing import to_money
from core.errors import ValidationError

LISTING_TYPES = ("sell", "trade", "announce", "advertise", "wanted")
LISTING_STATUSES = ("active", "sold", "inactive", "pending")

MAX_TITLE_LENGTH = 255
MIN_TITLE_LENGTH = 3
MAX_BASIC_DESCRIPTION = 150
MAX_IMAGES = 5


def _clean_text(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_listing(data: Dict) -> Dict:
    """
    Validate and normalize listing fields.
    Returns the cleaned fields; raises ValidationError with a user-facing message.
    """
    listing_type = data.get("type")
    if listing_type not in LISTING_TYPES:
        raise ValidationError("Valid listing type is required")

    title = _clean_text(data.get("title")) or ""
    if len(title) < MIN_TITLE_LENGTH:
        raise ValidationError("Title must be at least 3 characters")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError("Title must be less than 255 characters")

    category = _clean_text(data.get("category"))
    raw_price = data.get("price")
    has_price = raw_price not in (None, "", 0)

    if listing_type in ("sell", "trade", "wanted") and not category:
        raise ValidationError("Category is required for sell, trade, and wanted listings")
    if listing_type == "sell" and not has_price:
        raise ValidationError("Price is required for sell listings")
    if listing_type == "trade" and has_price:
        raise ValidationError("Price should not be set for trade listings")
    if listing_type == "announce" and (category or has_price):
        raise ValidationError("Category and price should not be set for announcements")

    price = None
    if has_price:
        try:
            price = to_money(raw_price)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("Price must be a number")
        if price < 0:
            raise ValidationError("Price must not be negative")

    basic_description = _clean_text(data.get("basic_description"))
    if basic_description and len(basic_description) > MAX_BASIC_DESCRIPTION:
        raise ValidationError("Basic description must be 150 characters or less")

    image_urls = [u for u in (data.get("image_urls") or []) if u]
    if len(image_urls) > MAX_IMAGES:
        raise ValidationError("Maximum 5 images allowed")

    status = data.get("status") or "active"
    if status not in LISTING_STATUSES:
        raise ValidationError("Invalid listing status")

    return {
        "type": listing_type,
        "category": category,
        "title": title,
        "price": price,
        "basic_description": basic_description,
        "detailed_description": _clean_text(data.get("detailed_description")),
        "image_urls": image_urls,
        "featured_image_url": _clean_text(data.get("featured_image_url")),
        "is_private": bool(data.get("is_private") or False),
        "status": status,
    }


__all__ = [
    "LISTING_TYPES",
    "LISTING_STATUSES",
    "validate_listing",
]
