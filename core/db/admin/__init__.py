"""
Admin storage helpers.
"""
from core.db.admin.admin_store import (
    get_dashboard_stats,
    record_admin_action,
    list_admin_actions,
    get_table_counts,
)

__all__ = [
    "get_dashboard_stats",
    "record_admin_action",
    "list_admin_actions",
    "get_table_counts",
]
