"""
User-related storage helpers, split by responsibility.
"""
from core.db.users.user_store import (
    BUSINESS_CONTEXT,
    create_or_update_user,
    get_user_by_email,
    get_user_by_id,
    mark_user_email_verified,
    set_user_active,
    set_user_role,
    list_users,
)
from core.db.users.sessions import (
    create_session,
    delete_session,
    delete_expired_sessions,
    get_session,
    touch_session,
    SESSION_TIMEOUT_MINUTES,
)
from core.db.users.magic_links import (
    MAGIC_LINK_MINUTES,
    create_magic_link_token,
    consume_magic_link_token,
    delete_expired_magic_links,
    cleanup_expired_tokens,
)

__all__ = [
    "BUSINESS_CONTEXT",
    "create_or_update_user",
    "get_user_by_email",
    "get_user_by_id",
    "mark_user_email_verified",
    "set_user_active",
    "set_user_role",
    "list_users",
    "create_session",
    "delete_session",
    "delete_expired_sessions",
    "get_session",
    "touch_session",
    "SESSION_TIMEOUT_MINUTES",
    "MAGIC_LINK_MINUTES",
    "create_magic_link_token",
    "consume_magic_link_token",
    "delete_expired_magic_links",
    "cleanup_expired_tokens",
]
