"""
Helpers for session cookies and current-user lookup.
"""
from __future__ import annotations

import os
from typing import Dict

from fastapi import HTTPException, Request
from fastapi.responses import Response

from core.db.users import SESSION_TIMEOUT_MINUTES, delete_session, get_session, get_user_by_id, touch_session

SESSION_COOKIE_NAME = "hsc_session"
SESSION_COOKIE_MAX_AGE = SESSION_TIMEOUT_MINUTES * 60
SECURE_COOKIES = (
    os.getenv("COOKIE_SECURE", "").lower() in ("1", "true", "yes")
    or os.getenv("PUBLIC_BASE_URL", "").lower().startswith("https://")
)


def get_current_user(request: Request):
    """
    Read session cookie and return (user_dict, session_token) or (None, None).
    Refreshes inactivity timeout when the session is valid.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None, None

    session = get_session(token)
    if not session:
        return None, token

    user = get_user_by_id(session["user_id"])
    if not user:
        delete_session(token)
        return None, token

    # Banned accounts lose their sessions
    if not user.get("active", True):
        delete_session(token)
        return None, token

    touch_session(token)
    return user, token


def public_user(user: Dict) -> Dict:
    return {
        "id": user["id"],
        "email": user["email"],
        "role": user.get("role") or "user",
        "is_admin": user.get("role") == "admin",
    }


def require_user(request: Request) -> Dict:
    """FastAPI dependency: the signed-in user, or 401."""
    user, _ = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_admin(request: Request) -> Dict:
    """FastAPI dependency: the signed-in admin, 401 when signed out, 403 otherwise."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=SESSION_COOKIE_MAX_AGE,
        samesite="lax",
        secure=SECURE_COOKIES,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
