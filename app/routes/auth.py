import logging
import os
import re

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.auth_utils import clear_session_cookie, get_current_user, public_user, set_session_cookie
from app.email_utils import send_magic_link_email
from app.schemas import MagicLinkRequest
from app.security import allow_request, client_ip
from core.db.users import (
    MAGIC_LINK_MINUTES,
    consume_magic_link_token,
    create_magic_link_token,
    create_or_update_user,
    create_session,
    delete_session,
    get_user_by_id,
    mark_user_email_verified,
)

log = logging.getLogger("hsc.auth")

router = APIRouter(prefix="/api/auth")

MAGIC_LINK_LIMIT = 5
MAGIC_LINK_WINDOW_SECONDS = 600


def _build_public_url(request: Request, path: str) -> str:
    base = (os.getenv("PUBLIC_BASE_URL") or str(request.base_url)).rstrip("/")
    return f"{base}{path}"


def _is_valid_email(email: str) -> bool:
    email = (email or "").strip()
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email):
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


@router.post("/send-magic-link")
def send_magic_link(payload: MagicLinkRequest, request: Request):
    ip = client_ip(request)
    if not allow_request(f"magic-link:{ip}", limit=MAGIC_LINK_LIMIT, window_seconds=MAGIC_LINK_WINDOW_SECONDS):
        return JSONResponse({"error": "Too many requests. Please try again later."}, status_code=429)

    email = (payload.email or "").strip().lower()
    if not _is_valid_email(email):
        return JSONResponse({"error": "Valid email address is required"}, status_code=400)

    user = create_or_update_user(email, payload.context or "general")
    token = create_magic_link_token(user["id"])
    link = _build_public_url(request, f"/api/auth/verify?token={token}")

    try:
        send_magic_link_email(email, link, MAGIC_LINK_MINUTES)
    except Exception:
        log.exception("Failed to send magic link to user_id=%s", user["id"])
        return JSONResponse({"error": "Failed to send magic link. Please try again."}, status_code=500)

    log.info("Magic link issued for user_id=%s", user["id"])
    return {"success": True, "message": "Check your email for a sign-in link."}


@router.get("/verify")
def verify(token: str = ""):
    record = consume_magic_link_token(token)
    if not record:
        return JSONResponse({"error": "Invalid or expired link"}, status_code=401)

    user = get_user_by_id(record["user_id"])
    if not user:
        return JSONResponse({"error": "Invalid or expired link"}, status_code=401)
    if not user.get("active", True):
        log.warning("Blocked sign-in for inactive user_id=%s", user["id"])
        return JSONResponse({"error": "Account is disabled"}, status_code=403)

    mark_user_email_verified(user["id"])
    session_token = create_session(user["id"])
    log.info("User %s signed in", user["id"])

    response = RedirectResponse(url="/", status_code=303)
    set_session_cookie(response, session_token)
    return response


@router.get("/me")
def me(request: Request):
    user, _ = get_current_user(request)
    if not user:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": public_user(user)}


@router.post("/logout")
def logout(request: Request):
    _, token = get_current_user(request)
    if token:
        delete_session(token)
    response = JSONResponse({"success": True})
    clear_session_cookie(response)
    return response
