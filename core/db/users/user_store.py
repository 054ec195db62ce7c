"""
User CRUD and admin moderation helpers.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.db.base import get_conn
from core.db.schema import admin_emails

_USER_COLUMNS = "id, email, role, active, community_verified, created_at, email_verified_at, last_login_at"

BUSINESS_CONTEXT = "business_advertising"


def create_or_update_user(email: str, context: str = "general") -> Dict:
    """
    Return the user for `email`, creating it on first sign-in.
    Emails in ADMIN_EMAILS get the admin role; business advertisers are
    community-verified.
    """
    email = email.strip().lower()
    is_admin = email in admin_emails()
    business = context == BUSINESS_CONTEXT

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        INSERT INTO users (email, role, community_verified)
        VALUES (?, ?, ?)
        ON CONFLICT (email) DO UPDATE
        SET role = CASE WHEN ? THEN 'admin' ELSE users.role END,
            community_verified = users.community_verified OR EXCLUDED.community_verified
        RETURNING {_USER_COLUMNS}
        """,
        (email, "admin" if is_admin else "user", business, is_admin),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row)


def get_user_by_email(email: str) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email.strip().lower(),))
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def get_user_by_id(user_id: int) -> Optional[Dict]:
    """Look up a user by numeric id. Returns dict or None."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def mark_user_email_verified(user_id: int) -> None:
    """Set email_verified_at (first time only) and record the login."""
    now = datetime.now(timezone.utc)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE users
        SET email_verified_at = COALESCE(email_verified_at, ?),
            last_login_at = ?
        WHERE id = ?
        """,
        (now, now, user_id),
    )
    conn.commit()
    conn.close()


def set_user_active(user_id: int, active: bool) -> bool:
    """Ban/unban. Banned users keep their data but lose their sessions."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("UPDATE users SET active = ? WHERE id = ?", (active, user_id))
    changed = cur.rowcount > 0
    if not active:
        cur.execute("DELETE FROM sessions WHERE user_id = ?", (user_id,))
    conn.commit()
    conn.close()
    return changed


def set_user_role(user_id: int, role: str) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
    changed = cur.rowcount > 0
    conn.commit()
    conn.close()
    return changed


def list_users(user_filter: str = "all", search: str = "", limit: int = 50, offset: int = 0) -> List[Dict]:
    """Users with their listing counts, newest first."""
    where = []
    params: list = []
    if user_filter == "active":
        where.append("u.active")
    elif user_filter == "banned":
        where.append("NOT u.active")
    elif user_filter == "admins":
        where.append("u.role = 'admin'")
    if search:
        where.append("u.email ILIKE ?")
        params.append(f"%{search}%")

    sql = f"""
        SELECT u.id, u.email, u.role, u.active, u.community_verified,
               u.created_at, u.email_verified_at, u.last_login_at,
               COUNT(l.id) AS listing_count,
               COUNT(l.id) FILTER (WHERE l.status = 'active') AS active_listing_count
        FROM users u
        LEFT JOIN listings l ON l.user_id = u.id
        {"WHERE " + " AND ".join(where) if where else ""}
        GROUP BY u.id
        ORDER BY u.created_at DESC, u.id DESC
        LIMIT ? OFFSET ?
    """
    params.extend([int(limit), int(offset)])

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(sql, params)
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


__all__ = [
    "BUSINESS_CONTEXT",
    "create_or_update_user",
    "get_user_by_email",
    "get_user_by_id",
    "mark_user_email_verified",
    "set_user_active",
    "set_user_role",
    "list_users",
]
