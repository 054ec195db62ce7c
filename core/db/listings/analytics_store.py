"""
Listing interaction tracking and per-listing analytics.
"""
from __future__ import annotations

from typing import Dict, Optional

from core.db.base import get_conn


def record_listing_event(
    listing_id: int,
    event_type: str,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
    device_type: Optional[str] = None,
    browser_name: Optional[str] = None,
    time_on_listing: Optional[int] = None,
    scroll_depth: Optional[int] = None,
) -> Optional[Dict]:
    """
    Log one interaction and bump the listing counters.
    Returns the listing's updated counters, or None if the listing does not exist.
    """
    conn = get_conn()
    cur = conn.cursor()

    if event_type == "click":
        cur.execute(
            """
            UPDATE listings
            SET clicks = clicks + 1, last_clicked_at = now()
            WHERE id = ? AND status <> 'deleted'
            RETURNING id, clicks, impression_count
            """,
            (listing_id,),
        )
    elif event_type == "impression":
        cur.execute(
            """
            UPDATE listings
            SET impression_count = impression_count + 1
            WHERE id = ? AND status <> 'deleted'
            RETURNING id, clicks, impression_count
            """,
            (listing_id,),
        )
    else:
        cur.execute(
            "SELECT id, clicks, impression_count FROM listings WHERE id = ? AND status <> 'deleted'",
            (listing_id,),
        )
    counters = cur.fetchone()

    if not counters:
        conn.rollback()
        conn.close()
        return None

    cur.execute(
        """
        INSERT INTO listing_analytics (
            listing_id, event_type, user_id, session_id, ip_address, user_agent,
            referrer, device_type, browser_name, time_on_listing, scroll_depth
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            listing_id,
            event_type,
            user_id,
            session_id,
            ip_address,
            user_agent,
            referrer,
            device_type,
            browser_name,
            time_on_listing,
            scroll_depth,
        ),
    )
    conn.commit()
    conn.close()
    return dict(counters)


def get_listing_analytics(listing_id: int, days: int = 7) -> Optional[Dict]:
    """Event counts, unique users, device/browser split and a daily breakdown."""
    conn = get_conn()
    cur = conn.cursor()

    cur.execute(
        "SELECT id, title, clicks, impression_count, created_at FROM listings "
        "WHERE id = ? AND status <> 'deleted'",
        (listing_id,),
    )
    listing = cur.fetchone()
    if not listing:
        conn.close()
        return None

    cur.execute(
        """
        SELECT event_type, COUNT(*) AS count
        FROM listing_analytics WHERE listing_id = ?
        GROUP BY event_type
        """,
        (listing_id,),
    )
    event_counts = {r["event_type"]: r["count"] for r in cur.fetchall()}

    cur.execute(
        """
        SELECT COUNT(DISTINCT user_id) AS count
        FROM listing_analytics WHERE listing_id = ? AND user_id IS NOT NULL
        """,
        (listing_id,),
    )
    unique_users = cur.fetchone()["count"]

    cur.execute(
        """
        SELECT device_type, COUNT(*) AS count
        FROM listing_analytics WHERE listing_id = ?
        GROUP BY device_type
        """,
        (listing_id,),
    )
    device_breakdown = {r["device_type"] or "unknown": r["count"] for r in cur.fetchall()}

    cur.execute(
        """
        SELECT browser_name, COUNT(*) AS count
        FROM listing_analytics WHERE listing_id = ?
        GROUP BY browser_name
        """,
        (listing_id,),
    )
    browser_breakdown = {r["browser_name"] or "unknown": r["count"] for r in cur.fetchall()}

    cur.execute(
        """
        SELECT event_timestamp::date AS day,
               COUNT(*) FILTER (WHERE event_type = 'click') AS clicks,
               COUNT(*) FILTER (WHERE event_type IN ('view', 'impression')) AS views,
               COUNT(*) FILTER (WHERE event_type NOT IN ('click', 'view', 'impression')) AS other
        FROM listing_analytics
        WHERE listing_id = ? AND event_timestamp >= now() - make_interval(days => ?::int)
        GROUP BY day
        ORDER BY day DESC
        """,
        (listing_id, days),
    )
    daily_breakdown = {
        r["day"].isoformat(): {"clicks": r["clicks"], "views": r["views"], "other": r["other"]}
        for r in cur.fetchall()
    }
    conn.close()

    return {
        "listing": dict(listing),
        "analytics": {
            "event_counts": event_counts,
            "unique_users": unique_users,
            "device_breakdown": device_breakdown,
            "browser_breakdown": browser_breakdown,
            "daily_breakdown": daily_breakdown,
            "total_events": sum(event_counts.values()),
        },
    }


__all__ = [
    "record_listing_event",
    "get_listing_analytics",
]
