"""
Admin dashboard aggregates and the moderation audit log.
"""
from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from core.db.base import get_conn
from core.db.schema import TABLES

NEW_USER_DAYS = 7
TOP_LISTINGS = 5


def get_dashboard_stats(week_start: date, week_end: date, today: date) -> Dict:
    conn = get_conn()
    cur = conn.cursor()

    cur.execute(
        """
        SELECT COUNT(*) AS total,
               COUNT(*) FILTER (WHERE email_verified_at IS NOT NULL) AS verified,
               COUNT(*) FILTER (WHERE role = 'admin') AS admins,
               COUNT(*) FILTER (WHERE NOT active) AS banned,
               COUNT(*) FILTER (WHERE created_at >= now() - make_interval(days => ?::int)) AS new_this_week
        FROM users
        """,
        (NEW_USER_DAYS,),
    )
    users = dict(cur.fetchone())

    cur.execute("SELECT type, COUNT(*) AS count FROM listings GROUP BY type")
    by_type = {r["type"]: r["count"] for r in cur.fetchall()}
    cur.execute("SELECT status, COUNT(*) AS count FROM listings GROUP BY status")
    by_status = {r["status"]: r["count"] for r in cur.fetchall()}

    cur.execute(
        """
        SELECT COUNT(*) AS active_bids, COALESCE(MAX(weekly_bid_amount), 0) AS top_bid
        FROM ad_bids
        WHERE status = 'active' AND week_end >= ? AND week_start <= ? AND week_end >= ?
        """,
        (today, week_end, week_start),
    )
    market = dict(cur.fetchone())

    cur.execute(
        """
        SELECT COALESCE(SUM(amount), 0) AS revenue, COUNT(*) AS payments
        FROM ad_payments
        WHERE status = 'completed' AND created_at::date BETWEEN ? AND ?
        """,
        (week_start, week_end),
    )
    revenue = dict(cur.fetchone())

    cur.execute(
        """
        SELECT id, title, type, clicks, impression_count
        FROM listings
        ORDER BY clicks DESC, id ASC
        LIMIT ?
        """,
        (TOP_LISTINGS,),
    )
    top_listings = [dict(r) for r in cur.fetchall()]
    conn.close()

    return {
        "users": users,
        "listings": {
            "total": sum(by_type.values()),
            "by_type": by_type,
            "by_status": by_status,
        },
        "ad_market": {
            "week_start": week_start,
            "week_end": week_end,
            "active_bids": market["active_bids"],
            "top_bid": market["top_bid"],
            "weekly_revenue": revenue["revenue"],
            "weekly_payments": revenue["payments"],
        },
        "top_listings": top_listings,
    }


def record_admin_action(
    admin_user_id: int,
    action_type: str,
    target_user_id: Optional[int] = None,
    description: Optional[str] = None,
) -> None:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO admin_actions (admin_user_id, target_user_id, action_type, action_description)
        VALUES (?, ?, ?, ?)
        """,
        (admin_user_id, target_user_id, action_type, description),
    )
    conn.commit()
    conn.close()


def list_admin_actions(limit: int = 50) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, admin_user_id, target_user_id, action_type, action_description, created_at
        FROM admin_actions
        ORDER BY created_at DESC, id DESC
        LIMIT ?
        """,
        (limit,),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_table_counts() -> Dict[str, int]:
    """Row counts per application table, for the system-info action."""
    conn = get_conn()
    cur = conn.cursor()
    counts = {}
    for table in TABLES:
        cur.execute(f"SELECT COUNT(*) AS count FROM {table}")
        counts[table] = cur.fetchone()["count"]
    conn.close()
    return counts


__all__ = [
    "get_dashboard_stats",
    "record_admin_action",
    "list_admin_actions",
    "get_table_counts",
]
