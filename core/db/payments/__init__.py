"""
Payment storage helpers.
"""
from core.db.payments.payments_store import (
    record_payment,
    get_payment_by_session,
    get_payment_by_subscription,
    mark_payment_fulfilled,
    set_subscription_auto_renew,
)

__all__ = [
    "record_payment",
    "get_payment_by_session",
    "get_payment_by_subscription",
    "mark_payment_fulfilled",
    "set_subscription_auto_renew",
]
