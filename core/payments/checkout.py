"""
Checkout flow for paid business ads.

A paid checkout becomes a bid through the same submission path as a direct
bid. Confirmation can arrive twice (the browser's success page and the
`checkout.session.completed` webhook). The unique session id on
`ad_payments` records the payment once, and the payment's `bid_id` marks
it fulfilled, so a confirmation that failed after recording is completed
by the next one. Subscription events act only on the bids that
subscription paid for.
"""
from __future__ import annotations

import logging
from decimal import InvalidOperation
from typing import Dict, Optional

import psycopg

from core.ads.bidding import ADVERTISE_TYPE, recalculate_week, submit_bid
from core.ads.market import get_market_state
from core.ads.pricing import BASE_WEEKLY_RATE, COMPETITIVE_INCREMENT, to_money, validate_payment_amount
from core.ads.week import week_for_date
from core.db import ads as bids_store
from core.db import payments as payments_store
from core.db.listings import activate_listing, get_owned_listing
from core.errors import NotFound, PaymentError, PersistenceError, ValidationError
from core.payments import stripe_client

log = logging.getLogger("hsc.payments")


def _field(obj, key: str, default=None):
    """Read a key from a dict or a Stripe object, treating missing and None alike."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, AttributeError):
        return default
    return default if value is None else value


def _stripe_id(value) -> Optional[str]:
    """An id from either a bare id string or an expanded Stripe object."""
    if not value:
        return None
    return value if isinstance(value, str) else _field(value, "id")


def _owned_ad_listing(listing_id: int, user_id: int, message: str) -> Dict:
    try:
        listing = get_owned_listing(listing_id, user_id, ADVERTISE_TYPE)
    except psycopg.Error as exc:
        log.exception("Failed to load listing %s", listing_id)
        raise PersistenceError() from exc
    if not listing:
        raise NotFound(message)
    return listing


def pricing_for_listing(user_id: int, listing_id: int) -> Dict:
    _owned_ad_listing(listing_id, user_id, "Business listing not found or unauthorized")
    market = get_market_state()
    top_bid = market["current_top_bid"]

    options = [
        {
            "name": "Standard Placement",
            "amount": BASE_WEEKLY_RATE,
            "description": "Regular grid position",
            "competitive": False,
        }
    ]
    if top_bid > 0:
        options.append(
            {
                "name": "Beat Competition",
                "amount": market["price_to_beat"],
                "description": f"Take top position (beats current ${top_bid}/week)",
                "competitive": True,
            }
        )
    return {
        "base_rate": BASE_WEEKLY_RATE,
        "competitive_increment": COMPETITIVE_INCREMENT,
        "current_top_bid": top_bid,
        "price_to_beat": market["price_to_beat"],
        "total_active_bids": market["total_active_bids"],
        "pricing_options": options,
    }


def start_checkout(
    user: Dict,
    listing_id: int,
    weekly_amount,
    payment_type: str,
    auto_renew: bool = False,
) -> Dict:
    if not validate_payment_amount(weekly_amount):
        raise ValidationError(
            f"Invalid payment amount. Must be at least ${BASE_WEEKLY_RATE} "
            f"and in ${COMPETITIVE_INCREMENT} increments"
        )
    if payment_type not in stripe_client.PAYMENT_TYPES:
        raise ValidationError("payment_type must be one_time or subscription")

    _owned_ad_listing(
        listing_id,
        user["id"],
        "Business listing not found or unauthorized. Only advertise-type listings can be paid for.",
    )

    amount = to_money(weekly_amount)
    top_bid = get_market_state()["current_top_bid"]
    is_competitive = amount > BASE_WEEKLY_RATE

    session = stripe_client.create_checkout_session(
        listing_id=listing_id,
        user_id=user["id"],
        user_email=user["email"],
        weekly_amount=amount,
        payment_type=payment_type,
        auto_renew=auto_renew,
        competitive_bid=is_competitive,
    )
    log.info("Checkout created for user %s, listing %s, amount %s", user["id"], listing_id, amount)
    return {
        "checkout_url": _field(session, "url"),
        "session_id": _field(session, "id"),
        "amount": amount,
        "is_competitive": is_competitive,
        "current_top_bid": top_bid,
    }


def confirm_checkout(session) -> Dict:
    """
    Turn a paid checkout session into an active bid and listing.
    Safe to call more than once for the same session.
    """
    session_id = _field(session, "id")
    if _field(session, "payment_status") != "paid":
        raise PaymentError("Payment not completed")

    metadata = _field(session, "metadata", {})
    try:
        listing_id = int(_field(metadata, "listing_id"))
        user_id = int(_field(metadata, "user_id"))
        amount = to_money(_field(metadata, "weekly_amount"))
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise PaymentError("Invalid payment metadata") from exc
    auto_renew = _field(metadata, "auto_renew") == "true"
    competitive_bid = _field(metadata, "competitive_bid") == "true"
    payment_type = _field(metadata, "payment_type", "one_time")

    listing = _owned_ad_listing(listing_id, user_id, "Business listing not found")
    subscription_id = _stripe_id(_field(session, "subscription"))

    try:
        payment, created = payments_store.record_payment(
            listing_id=listing_id,
            user_id=user_id,
            amount=amount,
            stripe_session_id=session_id,
            stripe_payment_intent_id=_stripe_id(_field(session, "payment_intent")),
            stripe_subscription_id=subscription_id,
            payment_type=payment_type,
            auto_renew=auto_renew,
        )
    except psycopg.Error as exc:
        log.exception("Failed to record payment for session %s", session_id)
        raise PersistenceError() from exc

    # A payment recorded by an attempt that failed before its bid was stored is still owed one.
    needs_bid = payment.get("bid_id") is None
    if needs_bid:
        result = submit_bid(
            user_id, listing_id, amount, auto_renew=auto_renew, subscription_id=subscription_id
        )
        try:
            activate_listing(listing_id)
            payments_store.mark_payment_fulfilled(payment["id"], result.bid["id"])
        except psycopg.Error as exc:
            log.exception("Failed to activate listing %s", listing_id)
            raise PersistenceError() from exc
        log.info(
            "Ad activated: user %s, listing %s, amount %s, competitive %s%s",
            user_id,
            listing_id,
            amount,
            competitive_bid,
            "" if created else " (retry)",
        )
    else:
        log.info("Checkout session %s already processed", session_id)

    return {
        "message": "Ad activated successfully" if needs_bid else "Payment already processed",
        "payment": {
            "session_id": session_id,
            "amount": amount,
            "listing_id": listing_id,
            "listing_title": listing.get("title"),
            "competitive_bid": competitive_bid,
            "payment_type": payment_type,
        },
    }


def confirm_checkout_session(session_id: str) -> Dict:
    return confirm_checkout(stripe_client.retrieve_checkout_session(session_id))


def _invoice_subscription(invoice) -> Optional[str]:
    # Newer API versions move the subscription under parent.subscription_details.
    direct = _stripe_id(_field(invoice, "subscription"))
    if direct:
        return direct
    details = _field(_field(invoice, "parent"), "subscription_details")
    return _stripe_id(_field(details, "subscription"))


def _payment_for_subscription(subscription_id: Optional[str]) -> Optional[Dict]:
    if not subscription_id:
        return None
    try:
        return payments_store.get_payment_by_subscription(subscription_id)
    except psycopg.Error as exc:
        log.exception("Failed to look up subscription %s", subscription_id)
        raise PersistenceError() from exc


def _move_subscription_bids(
    subscription_id: str, from_statuses, to_status: str, disable_auto_renew: bool = False
) -> None:
    try:
        weeks = bids_store.set_subscription_bid_status(
            subscription_id, from_statuses, to_status, disable_auto_renew
        )
    except psycopg.Error as exc:
        log.exception("Failed to move bids of subscription %s to %s", subscription_id, to_status)
        raise PersistenceError() from exc
    for week_start in weeks:
        recalculate_week(week_for_date(week_start))


def _on_invoice_paid(invoice) -> None:
    subscription_id = _invoice_subscription(invoice)
    payment = _payment_for_subscription(subscription_id)
    if not payment or not payment["auto_renew"]:
        return
    submit_bid(
        payment["user_id"],
        payment["listing_id"],
        payment["amount"],
        auto_renew=True,
        subscription_id=subscription_id,
    )
    log.info("Renewed weekly ad for listing %s", payment["listing_id"])


def _on_invoice_failed(invoice) -> None:
    subscription_id = _invoice_subscription(invoice)
    payment = _payment_for_subscription(subscription_id)
    if not payment:
        return
    _move_subscription_bids(subscription_id, ["active"], "paused")
    log.warning(
        "Paused ad for listing %s after failed payment on subscription %s",
        payment["listing_id"],
        subscription_id,
    )


def _on_subscription_deleted(subscription) -> None:
    subscription_id = _stripe_id(_field(subscription, "id"))
    payment = _payment_for_subscription(subscription_id)
    if not payment:
        return
    _move_subscription_bids(subscription_id, ["active", "paused"], "cancelled", disable_auto_renew=True)
    try:
        payments_store.set_subscription_auto_renew(subscription_id, False)
    except psycopg.Error as exc:
        log.exception("Failed to turn off auto-renew for subscription %s", subscription_id)
        raise PersistenceError() from exc
    log.info("Subscription %s cancelled for listing %s", subscription_id, payment["listing_id"])


def handle_webhook_event(event) -> Dict:
    event_type = _field(event, "type")
    obj = _field(_field(event, "data"), "object")

    if event_type == "checkout.session.completed":
        try:
            confirm_checkout(obj)
        except (PaymentError, NotFound) as exc:
            log.warning("Checkout session %s not activated: %s", _field(obj, "id"), exc)
            return {"received": True, "processed": False}
    elif event_type == "invoice.payment_succeeded":
        _on_invoice_paid(obj)
    elif event_type == "invoice.payment_failed":
        _on_invoice_failed(obj)
    elif event_type == "customer.subscription.deleted":
        _on_subscription_deleted(obj)
    else:
        log.info("Unhandled Stripe event type %s", event_type)
        return {"received": True, "processed": False}
    return {"received": True, "processed": True}


__all__ = [
    "pricing_for_listing",
    "start_checkout",
    "confirm_checkout",
    "confirm_checkout_session",
    "handle_webhook_event",
]
