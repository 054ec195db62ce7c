"""
Weekly ad bid storage.

`ad_bids_one_active_per_week` (a partial unique index on listing_id and
week_start for active rows) is the only guard against duplicate active bids;
every write path goes through a single statement that targets it.
"""
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from core.ads.slots import rank_bids
from core.ads.week import Week
from core.db.base import get_conn

_BID_COLUMNS = """
    b.id, b.listing_id, b.user_id, b.weekly_bid_amount, b.max_auto_bid,
    b.auto_renew, b.current_position, b.week_start, b.week_end, b.status,
    b.stripe_subscription_id, b.created_at, b.updated_at
"""

_LISTING_COLUMNS = """
    l.title AS listing_title, l.type AS listing_type,
    l.featured_image_url AS listing_featured_image_url,
    l.basic_description AS listing_basic_description
"""


def upsert_active_bid(
    listing_id: int,
    user_id: int,
    weekly_bid_amount,
    max_auto_bid,
    auto_renew: bool,
    week: Week,
    stripe_subscription_id: Optional[str] = None,
) -> Tuple[Dict, bool]:
    """
    Insert the active bid for (listing, week) or update its price terms in place.
    An update keeps the stored subscription unless a new one is given.
    Returns (bid_row, created).
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO ad_bids AS b (
            listing_id, user_id, weekly_bid_amount, max_auto_bid, auto_renew,
            week_start, week_end, status, stripe_subscription_id
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, 'active', ?)
        ON CONFLICT (listing_id, week_start) WHERE status = 'active'
        DO UPDATE SET
            weekly_bid_amount = EXCLUDED.weekly_bid_amount,
            max_auto_bid = EXCLUDED.max_auto_bid,
            auto_renew = EXCLUDED.auto_renew,
            stripe_subscription_id = COALESCE(EXCLUDED.stripe_subscription_id, b.stripe_subscription_id),
            updated_at = clock_timestamp()
        RETURNING b.id, b.listing_id, b.user_id, b.weekly_bid_amount, b.max_auto_bid,
                  b.auto_renew, b.current_position, b.week_start, b.week_end, b.status,
                  b.stripe_subscription_id, b.created_at, b.updated_at,
                  (b.xmax = 0) AS created
        """,
        (
            listing_id,
            user_id,
            weekly_bid_amount,
            max_auto_bid,
            auto_renew,
            week.start,
            week.end,
            stripe_subscription_id,
        ),
    )
    row = dict(cur.fetchone())
    conn.commit()
    conn.close()
    created = bool(row.pop("created"))
    return row, created


def get_bid(bid_id: int) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_BID_COLUMNS} FROM ad_bids b WHERE b.id = ?", (bid_id,))
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def cancel_bid(bid_id: int, user_id: int) -> Optional[Dict]:
    """Soft-cancel a bid owned by `user_id`. Returns the row, or None if not theirs."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE ad_bids AS b
        SET status = 'cancelled', current_position = NULL, updated_at = clock_timestamp()
        WHERE b.id = ? AND b.user_id = ? AND b.status <> 'expired'
        RETURNING b.id, b.listing_id, b.user_id, b.weekly_bid_amount, b.max_auto_bid,
                  b.auto_renew, b.current_position, b.week_start, b.week_end, b.status,
                  b.stripe_subscription_id, b.created_at, b.updated_at
        """,
        (bid_id, user_id),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row) if row else None


def get_user_bids(user_id: int, include_expired: bool = False) -> List[Dict]:
    statuses = ["active", "paused", "cancelled", "expired"] if include_expired else ["active", "paused"]
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_BID_COLUMNS}, {_LISTING_COLUMNS}
        FROM ad_bids b
        LEFT JOIN listings l ON l.id = b.listing_id
        WHERE b.user_id = ? AND b.status = ANY(?)
        ORDER BY b.created_at DESC, b.id DESC
        """,
        (user_id, statuses),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_active_bids(week: Week, today: date) -> List[Dict]:
    """
    Active bids whose window overlaps `week` and has not ended before `today`,
    in stored position order (unranked last). One statement, one snapshot.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_BID_COLUMNS}, {_LISTING_COLUMNS}
        FROM ad_bids b
        JOIN listings l ON l.id = b.listing_id
        WHERE b.status = 'active'
          AND l.type = 'advertise'
          AND l.status <> 'deleted'
          AND b.week_end >= ?
          AND b.week_start <= ?
          AND b.week_end >= ?
        ORDER BY b.current_position ASC NULLS LAST,
                 b.weekly_bid_amount DESC, b.created_at ASC, b.id ASC
        """,
        (today, week.end, week.start),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def recalculate_positions(week: Week, today: date) -> List[Dict]:
    """
    Rebuild `current_position` for every active bid of `week` from scratch.

    Runs as one transaction serialized per week by an advisory lock: stale
    bids are expired, the active set is locked and ranked, and all positions
    are written before commit, so readers see either the old or the new
    ranking. Returns the ranked rows.
    """
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            "SELECT pg_advisory_xact_lock(hashtext(?))",
            (f"ad_positions:{week.start.isoformat()}",),
        )
        cur.execute(
            """
            UPDATE ad_bids
            SET status = 'expired', current_position = NULL, updated_at = clock_timestamp()
            WHERE status = 'active' AND week_end < ?
            """,
            (today,),
        )
        cur.execute(
            """
            SELECT b.id, b.listing_id, b.weekly_bid_amount, b.created_at
            FROM ad_bids b
            JOIN listings l ON l.id = b.listing_id
            WHERE b.status = 'active' AND b.week_start = ?
              AND l.type = 'advertise' AND l.status <> 'deleted'
            ORDER BY b.id
            FOR UPDATE OF b
            """,
            (week.start,),
        )
        ranked = rank_bids(cur.fetchall())

        cur.execute(
            """
            UPDATE ad_bids SET current_position = NULL
            WHERE week_start = ? AND current_position IS NOT NULL AND NOT (id = ANY(?))
            """,
            (week.start, [r["id"] for r in ranked]),
        )
        if ranked:
            cur.executemany(
                "UPDATE ad_bids SET current_position = ? WHERE id = ?",
                [(r["current_position"], r["id"]) for r in ranked],
            )
    return ranked


def set_listing_bid_status(
    listing_id: int,
    from_statuses: Iterable[str],
    to_status: str,
    disable_auto_renew: bool = False,
) -> List[date]:
    """
    Move a listing's bids between statuses (withdrawing a deleted or retyped listing).
    Returns the affected week starts so callers can re-rank them.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE ad_bids
        SET status = ?,
            current_position = NULL,
            auto_renew = CASE WHEN ? THEN FALSE ELSE auto_renew END,
            updated_at = clock_timestamp()
        WHERE listing_id = ? AND status = ANY(?)
        RETURNING week_start
        """,
        (to_status, disable_auto_renew, listing_id, list(from_statuses)),
    )
    weeks = sorted({r["week_start"] for r in cur.fetchall()})
    conn.commit()
    conn.close()
    return weeks



def set_subscription_bid_status(
    stripe_subscription_id: str,
    from_statuses: Iterable[str],
    to_status: str,
    disable_auto_renew: bool = False,
) -> List[date]:
    """
    Move the bids paid for by one subscription (payment failure, subscription end).
    Bids of the same listing funded another way are left alone.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE ad_bids
        SET status = ?,
            current_position = NULL,
            auto_renew = CASE WHEN ? THEN FALSE ELSE auto_renew END,
            updated_at = clock_timestamp()
        WHERE stripe_subscription_id = ? AND status = ANY(?)
        RETURNING week_start
        """,
        (to_status, disable_auto_renew, stripe_subscription_id, list(from_statuses)),
    )
    weeks = sorted({r["week_start"] for r in cur.fetchall()})
    conn.commit()
    conn.close()
    return weeks

__all__ = [
    "upsert_active_bid",
    "get_bid",
    "cancel_bid",
    "get_user_bids",
    "get_active_bids",
    "recalculate_positions",
    "set_listing_bid_status",
    "set_subscription_bid_status",
]
