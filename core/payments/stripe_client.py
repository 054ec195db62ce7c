"""
Thin wrapper over the Stripe SDK for business ad checkout.
"""
from __future__ import annotations

import logging
import os
from decimal import Decimal

import stripe

from core.ads.pricing import CURRENCY, to_money
from core.errors import PaymentError

log = logging.getLogger("hsc.payments")

PAYMENT_TYPES = ("one_time", "subscription")


def _configure() -> None:
    key = os.getenv("STRIPE_SECRET_KEY")
    if not key:
        raise PaymentError("Payments are not configured", upstream=True)
    stripe.api_key = key


def _base_url() -> str:
    return (os.getenv("PUBLIC_BASE_URL") or "http://localhost:8000").rstrip("/")


def _cents(amount: Decimal) -> int:
    return int(to_money(amount) * 100)


def create_checkout_session(
    listing_id: int,
    user_id: int,
    user_email: str,
    weekly_amount: Decimal,
    payment_type: str,
    auto_renew: bool,
    competitive_bid: bool,
):
    """Start a hosted checkout; subscriptions bill the same amount weekly."""
    _configure()
    if competitive_bid:
        name = f"Business Ad - Premium Placement (${weekly_amount}/week)"
        description = "Competitive positioning for better visibility"
    else:
        name = f"Business Ad - Standard Placement (${weekly_amount}/week)"
        description = "Standard business advertisement placement"

    price_data = {
        "currency": CURRENCY,
        "product_data": {"name": name, "description": description},
        "unit_amount": _cents(weekly_amount),
    }
    if payment_type == "subscription":
        price_data["recurring"] = {"interval": "week", "interval_count": 1}

    base = _base_url()
    try:
        return stripe.checkout.Session.create(
            customer_email=user_email,
            line_items=[{"price_data": price_data, "quantity": 1}],
            mode="subscription" if payment_type == "subscription" else "payment",
            success_url=f"{base}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/payment/cancel",
            metadata={
                "listing_id": str(listing_id),
                "user_id": str(user_id),
                "weekly_amount": str(weekly_amount),
                "auto_renew": str(bool(auto_renew)).lower(),
                "competitive_bid": str(bool(competitive_bid)).lower(),
                "payment_type": payment_type,
            },
        )
    except stripe.StripeError as exc:
        log.exception("Stripe checkout creation failed for listing %s", listing_id)
        raise PaymentError("Payment setup failed", upstream=True) from exc


def retrieve_checkout_session(session_id: str):
    _configure()
    try:
        return stripe.checkout.Session.retrieve(session_id)
    except stripe.InvalidRequestError as exc:
        raise PaymentError("Invalid payment session") from exc
    except stripe.StripeError as exc:
        log.exception("Stripe session lookup failed for %s", session_id)
        raise PaymentError("Payment provider unavailable", upstream=True) from exc


def construct_event(payload: bytes, signature: str | None):
    """Verify a webhook payload against STRIPE_WEBHOOK_SECRET."""
    secret = os.getenv("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise PaymentError("Webhook secret is not configured", upstream=True)
    try:
        return stripe.Webhook.construct_event(payload, signature or "", secret)
    except (ValueError, stripe.SignatureVerificationError) as exc:
        log.warning("Rejected Stripe webhook: %s", exc)
        raise PaymentError("Webhook signature verification failed") from exc


__all__ = [
    "PAYMENT_TYPES",
    "create_checkout_session",
    "retrieve_checkout_session",
    "construct_event",
]
