"""
Login sessions with a sliding inactivity timeout.

Expiry is evaluated by Postgres (`now()`), so app servers with skewed clocks
agree on which sessions are still valid.
"""
from __future__ import annotations

import secrets
from typing import Dict, Optional

from core.db.base import get_conn

SESSION_TIMEOUT_MINUTES = 60  # inactivity timeout

_SESSION_COLUMNS = "id, user_id, created_at, last_seen_at, expires_at"


def create_session(user_id: int) -> str:
    """Open a session for `user_id` and return its token."""
    token = secrets.token_urlsafe(32)
    with get_conn() as conn:
        conn.cursor().execute(
            """
            INSERT INTO sessions (id, user_id, created_at, last_seen_at, expires_at)
            VALUES (?, ?, now(), now(), now() + make_interval(mins => ?))
            """,
            (token, user_id, SESSION_TIMEOUT_MINUTES),
        )
    return token


def delete_session(session_id: str) -> None:
    if not session_id:
        return
    with get_conn() as conn:
        conn.cursor().execute("DELETE FROM sessions WHERE id = ?", (session_id,))


def get_session(session_id: str) -> Optional[Dict]:
    """The live session for `session_id`, or None. An expired session is removed on sight."""
    if not session_id:
        return None

    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM sessions WHERE id = ? AND expires_at <= now()", (session_id,))
        cur.execute(f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,))
        row = cur.fetchone()
    return dict(row) if row else None


def touch_session(session_id: str) -> None:
    """Push the expiry out by another full timeout."""
    if not session_id:
        return
    with get_conn() as conn:
        conn.cursor().execute(
            """
            UPDATE sessions
            SET last_seen_at = now(), expires_at = now() + make_interval(mins => ?)
            WHERE id = ?
            """,
            (SESSION_TIMEOUT_MINUTES, session_id),
        )


def delete_expired_sessions() -> int:
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM sessions WHERE expires_at <= now()")
        return cur.rowcount


__all__ = [
    "SESSION_TIMEOUT_MINUTES",
    "create_session",
    "delete_session",
    "get_session",
    "touch_session",
    "delete_expired_sessions",
]
