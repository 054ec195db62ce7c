"""
Listing and listing-analytics storage re-exports.
"""
from core.db.listings.listings_store import (
    DELETED_STATUS,
    create_listing,
    get_listing,
    get_owned_listing,
    list_listings,
    update_listing,
    delete_listing,
    activate_listing,
)
from core.db.listings.analytics_store import (
    record_listing_event,
    get_listing_analytics,
)

__all__ = [
    "DELETED_STATUS",
    "create_listing",
    "get_listing",
    "get_owned_listing",
    "list_listings",
    "update_listing",
    "delete_listing",
    "activate_listing",
    "record_listing_event",
    "get_listing_analytics",
]
