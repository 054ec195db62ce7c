"""
Admin dashboard, maintenance actions and user moderation.
"""
import logging
import platform
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth_utils import require_admin
from app.schemas import AdminDashboardAction, AdminUserAction
from core.ads.bidding import recalculate_week
from core.ads.week import today, week_for_date
from core.db.admin import get_dashboard_stats, get_table_counts, list_admin_actions, record_admin_action
from core.db.users import cleanup_expired_tokens, get_user_by_id, list_users, set_user_active, set_user_role

log = logging.getLogger("hsc.admin")

router = APIRouter(prefix="/api/admin")

USER_FILTERS = ("all", "active", "banned", "admins")
USER_ACTIONS = ("ban", "unban", "make_admin", "remove_admin")


@router.get("/dashboard")
def dashboard(admin: Dict = Depends(require_admin)):
    day = today()
    week = week_for_date(day)
    return {"success": True, **get_dashboard_stats(week.start, week.end, day)}


@router.post("/dashboard")
def dashboard_action(payload: AdminDashboardAction, admin: Dict = Depends(require_admin)):
    if payload.action == "cleanup_tokens":
        result = cleanup_expired_tokens()
        record_admin_action(admin["id"], "cleanup_tokens", description=str(result))
        log.info("Admin %s cleaned up tokens: %s", admin["id"], result)
        return {"success": True, "message": "Expired tokens cleaned up", **result}

    if payload.action == "recalculate_positions":
        week = week_for_date(today())
        ranked = recalculate_week(week)
        record_admin_action(admin["id"], "recalculate_positions", description=f"week {week.start}")
        return {
            "success": True,
            "message": "Ad positions recalculated",
            "week_start": week.start,
            "active_bids": len(ranked),
        }

    if payload.action == "get_system_info":
        return {
            "success": True,
            "system": {
                "python_version": platform.python_version(),
                "platform": platform.platform(),
                "server_time": datetime.now(timezone.utc),
                "table_counts": get_table_counts(),
            },
        }

    return JSONResponse({"error": "Unknown action"}, status_code=400)


@router.get("/users")
def users(
    filter: str = "all",
    search: str = "",
    limit: int = 50,
    offset: int = 0,
    admin: Dict = Depends(require_admin),
):
    if filter not in USER_FILTERS:
        return JSONResponse({"error": f"filter must be one of: {', '.join(USER_FILTERS)}"}, status_code=400)
    limit = max(1, min(limit, 100))
    offset = max(0, offset)
    rows = list_users(filter, search.strip(), limit, offset)
    return {"success": True, "users": rows, "pagination": {"limit": limit, "offset": offset, "count": len(rows)}}


def _apply_user_action(admin: Dict, action: str, user_id: int) -> Dict:
    if user_id == admin["id"] and action in ("ban", "remove_admin"):
        return {"user_id": user_id, "success": False, "error": "You cannot do that to your own account"}

    target = get_user_by_id(user_id)
    if not target:
        return {"user_id": user_id, "success": False, "error": "User not found"}

    if action == "ban":
        set_user_active(user_id, False)
    elif action == "unban":
        set_user_active(user_id, True)
    elif action == "make_admin":
        set_user_role(user_id, "admin")
    elif action == "remove_admin":
        set_user_role(user_id, "user")

    record_admin_action(admin["id"], action, target_user_id=user_id, description=f"{action} {target['email']}")
    log.info("Admin %s applied %s to user %s", admin["id"], action, user_id)
    return {"user_id": user_id, "success": True}


@router.post("/users/action")
def user_action(payload: AdminUserAction, admin: Dict = Depends(require_admin)):
    if payload.action not in USER_ACTIONS:
        return JSONResponse({"error": f"action must be one of: {', '.join(USER_ACTIONS)}"}, status_code=400)
    if not payload.user_ids:
        return JSONResponse({"error": "user_ids is required"}, status_code=400)

    results = [_apply_user_action(admin, payload.action, uid) for uid in payload.user_ids]
    return {
        "success": True,
        "action": payload.action,
        "results": results,
        "succeeded": sum(1 for r in results if r["success"]),
    }


@router.get("/actions")
def actions(limit: int = 50, admin: Dict = Depends(require_admin)):
    limit = max(1, min(limit, 200))
    return {"success": True, "actions": list_admin_actions(limit)}
