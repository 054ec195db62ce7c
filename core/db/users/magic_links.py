"""
Magic-link sign-in token storage helpers.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from core.db.base import get_conn
from core.db.users.sessions import delete_expired_sessions

MAGIC_LINK_MINUTES = 15


def create_magic_link_token(user_id: int) -> str:
    """Create a new single-use sign-in token for a user."""
    token = secrets.token_urlsafe(32)
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=MAGIC_LINK_MINUTES)

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO magic_link_tokens (user_id, token, created_at, expires_at, used_at)
        VALUES (?, ?, ?, ?, NULL)
        """,
        (user_id, token, now, expires_at),
    )
    conn.commit()
    conn.close()
    return token


def consume_magic_link_token(token: str) -> Optional[Dict]:
    """
    Mark a token used and return its row, or None when the token is unknown,
    already used, or expired. The check and the update are one statement, so
    a link cannot be redeemed twice.
    """
    if not token:
        return None

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE magic_link_tokens
        SET used_at = now()
        WHERE token = ? AND used_at IS NULL AND expires_at > now()
        RETURNING id, user_id, token, created_at, expires_at, used_at
        """,
        (token,),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row) if row else None


def delete_expired_magic_links() -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM magic_link_tokens WHERE expires_at < now() OR used_at IS NOT NULL")
    removed = cur.rowcount
    conn.commit()
    conn.close()
    return removed


def cleanup_expired_tokens() -> Dict[str, int]:
    """Remove expired or used magic links and expired sessions."""
    return {
        "magic_links_removed": delete_expired_magic_links(),
        "sessions_removed": delete_expired_sessions(),
    }


__all__ = [
    "MAGIC_LINK_MINUTES",
    "create_magic_link_token",
    "consume_magic_link_token",
    "delete_expired_magic_links",
    "cleanup_expired_tokens",
]
