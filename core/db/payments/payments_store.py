"""
Ad payment records.

`stripe_session_id` is unique, so recording the same checkout twice (browser
confirmation racing the webhook) stores one row and tells the second caller.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from core.db.base import get_conn

_PAYMENT_COLUMNS = """
    id, listing_id, user_id, amount, currency, stripe_session_id,
    stripe_payment_intent_id, stripe_subscription_id, payment_type,
    auto_renew, status, bid_id, created_at
"""


def record_payment(
    listing_id: int,
    user_id: int,
    amount,
    stripe_session_id: str,
    stripe_payment_intent_id: Optional[str] = None,
    stripe_subscription_id: Optional[str] = None,
    payment_type: str = "one_time",
    auto_renew: bool = False,
    currency: str = "usd",
) -> Tuple[Dict, bool]:
    """
    Insert a completed payment once per checkout session.
    Returns (payment_row, created); created is False for a repeat.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        INSERT INTO ad_payments (
            listing_id, user_id, amount, currency, stripe_session_id,
            stripe_payment_intent_id, stripe_subscription_id, payment_type,
            auto_renew, status
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'completed')
        ON CONFLICT (stripe_session_id) DO NOTHING
        RETURNING {_PAYMENT_COLUMNS}
        """,
        (
            listing_id,
            user_id,
            amount,
            currency,
            stripe_session_id,
            stripe_payment_intent_id,
            stripe_subscription_id,
            payment_type,
            auto_renew,
        ),
    )
    row = cur.fetchone()
    created = row is not None
    if not created:
        cur.execute(
            f"SELECT {_PAYMENT_COLUMNS} FROM ad_payments WHERE stripe_session_id = ?",
            (stripe_session_id,),
        )
        row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row), created


def get_payment_by_session(stripe_session_id: str) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_PAYMENT_COLUMNS} FROM ad_payments WHERE stripe_session_id = ?",
        (stripe_session_id,),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def get_payment_by_subscription(stripe_subscription_id: str) -> Optional[Dict]:
    """Most recent payment that started a subscription."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_PAYMENT_COLUMNS}
        FROM ad_payments
        WHERE stripe_subscription_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT 1
        """,
        (stripe_subscription_id,),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def mark_payment_fulfilled(payment_id: int, bid_id: int) -> None:
    """Link a payment to the bid it paid for; a payment with no bid is still owed one."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("UPDATE ad_payments SET bid_id = ? WHERE id = ?", (bid_id, payment_id))
    conn.commit()
    conn.close()


def set_subscription_auto_renew(stripe_subscription_id: str, auto_renew: bool) -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE ad_payments SET auto_renew = ? WHERE stripe_subscription_id = ?",
        (auto_renew, stripe_subscription_id),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated


__all__ = [
    "record_payment",
    "get_payment_by_session",
    "get_payment_by_subscription",
    "mark_payment_fulfilled",
    "set_subscription_auto_renew",
]
