"""
Listing rules shared by the HTTP layer and the stores.
"""
from core.listings.validation import (
    LISTING_TYPES,
    LISTING_STATUSES,
    validate_listing,
)
from core.listings.tracking import (
    EVENT_TYPES,
    browser_name,
    device_type,
)

__all__ = [
    "LISTING_TYPES",
    "LISTING_STATUSES",
    "validate_listing",
    "EVENT_TYPES",
    "browser_name",
    "device_type",
]
