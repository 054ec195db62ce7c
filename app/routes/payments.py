"""
Checkout, payment confirmation and the Stripe webhook.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.auth_utils import require_user
from app.schemas import CheckoutRequest, PaymentConfirmRequest
from core.payments.checkout import (
    confirm_checkout_session,
    handle_webhook_event,
    pricing_for_listing,
    start_checkout,
)
from core.payments.stripe_client import construct_event

router = APIRouter(prefix="/api")


@router.get("/checkout")
def checkout_pricing(listing_id: Optional[int] = None, user: Dict = Depends(require_user)):
    if listing_id is None:
        return JSONResponse({"error": "listing_id is required"}, status_code=400)
    return {"success": True, "pricing": pricing_for_listing(user["id"], listing_id)}


@router.post("/checkout")
def create_checkout(payload: CheckoutRequest, user: Dict = Depends(require_user)):
    if payload.listing_id is None or payload.weekly_amount in (None, "") or not payload.payment_type:
        return JSONResponse(
            {"error": "listing_id, weekly_amount, and payment_type are required"},
            status_code=400,
        )
    result = start_checkout(
        user,
        payload.listing_id,
        payload.weekly_amount,
        payload.payment_type,
        auto_renew=payload.auto_renew,
    )
    return {"success": True, **result}


@router.post("/payment/confirm")
def confirm_payment(payload: PaymentConfirmRequest):
    if not payload.session_id:
        return JSONResponse({"error": "session_id is required"}, status_code=400)
    return {"success": True, **confirm_checkout_session(payload.session_id)}


@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request):
    payload = await request.body()
    event = construct_event(payload, request.headers.get("stripe-signature"))
    return await run_in_threadpool(handle_webhook_event, event)
