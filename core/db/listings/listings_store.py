"""
Listing storage helpers.

Deleting a listing only marks it `deleted`, so its bids and payments keep
pointing at a real row. Deleted listings are invisible to every read and
write here.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from core.db.base import get_conn

_LISTING_COLUMNS = """
    id, user_id, type, category, title, price, basic_description,
    detailed_description, image_urls, featured_image_url, is_private, status,
    clicks, impression_count, last_clicked_at, created_at, updated_at
"""

DELETED_STATUS = "deleted"
SOLD_VISIBLE_DAYS = 7
MAX_PAGE_SIZE = 100


def create_listing(user_id: int, fields: Dict) -> Dict:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        INSERT INTO listings (
            user_id, type, category, title, price, basic_description,
            detailed_description, image_urls, featured_image_url, is_private, status
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING {_LISTING_COLUMNS}
        """,
        (
            user_id,
            fields["type"],
            fields.get("category"),
            fields["title"],
            fields.get("price"),
            fields.get("basic_description"),
            fields.get("detailed_description"),
            fields.get("image_urls") or [],
            fields.get("featured_image_url"),
            fields.get("is_private", False),
            fields.get("status") or "active",
        ),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row)


def get_listing(listing_id: int) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_LISTING_COLUMNS} FROM listings WHERE id = ? AND status <> 'deleted'",
        (listing_id,),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def get_owned_listing(listing_id: int, user_id: int, listing_type: Optional[str] = None) -> Optional[Dict]:
    """Return the listing only if `user_id` owns it (and it has `listing_type`, when given)."""
    sql = (
        f"SELECT {_LISTING_COLUMNS} FROM listings "
        "WHERE id = ? AND user_id = ? AND status <> 'deleted'"
    )
    params: list = [listing_id, user_id]
    if listing_type:
        sql += " AND type = ?"
        params.append(listing_type)

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(sql, params)
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def list_listings(
    listing_type: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    is_private: Optional[bool] = None,
    user_id: Optional[int] = None,
    min_price=None,
    max_price=None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Dict]:
    """
    Filtered listing search, newest first.
    The default view shows active listings plus ones sold in the last week.
    """
    where: list[str] = []
    params: list = []

    if not status or status == "active":
        where.append(
            "(status = 'active' OR (status = 'sold' AND updated_at >= now() - make_interval(days => ?::int)))"
        )
        params.append(SOLD_VISIBLE_DAYS)
    elif status == "sold":
        where.append("status = 'sold' AND updated_at >= now() - make_interval(days => ?::int)")
        params.append(SOLD_VISIBLE_DAYS)
    elif status == DELETED_STATUS:
        return []
    else:
        where.append("status = ?")
        params.append(status)

    if listing_type:
        where.append("type = ?")
        params.append(listing_type)
    if category:
        where.append("category = ?")
        params.append(category)
    if is_private is not None:
        where.append("is_private = ?")
        params.append(is_private)
    if user_id is not None:
        where.append("user_id = ?")
        params.append(user_id)
    if min_price is not None:
        where.append("price >= ?")
        params.append(min_price)
    if max_price is not None:
        where.append("price <= ?")
        params.append(max_price)
    if search:
        where.append("(title ILIKE ? OR basic_description ILIKE ? OR detailed_description ILIKE ?)")
        pattern = f"%{search}%"
        params.extend([pattern, pattern, pattern])

    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    params.extend([limit, max(0, int(offset))])

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        SELECT {_LISTING_COLUMNS}
        FROM listings
        WHERE {" AND ".join(where)}
        ORDER BY created_at DESC, id DESC
        LIMIT ? OFFSET ?
        """,
        params,
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def update_listing(listing_id: int, fields: Dict) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"""
        UPDATE listings
        SET type = ?, category = ?, title = ?, price = ?, basic_description = ?,
            detailed_description = ?, image_urls = ?, featured_image_url = ?,
            is_private = ?, status = ?, updated_at = now()
        WHERE id = ? AND status <> 'deleted'
        RETURNING {_LISTING_COLUMNS}
        """,
        (
            fields["type"],
            fields.get("category"),
            fields["title"],
            fields.get("price"),
            fields.get("basic_description"),
            fields.get("detailed_description"),
            fields.get("image_urls") or [],
            fields.get("featured_image_url"),
            fields.get("is_private", False),
            fields.get("status") or "active",
            listing_id,
        ),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return dict(row) if row else None


def delete_listing(listing_id: int) -> bool:
    """Soft-delete; returns False when there was no live listing to delete."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE listings SET status = 'deleted', updated_at = now()
        WHERE id = ? AND status <> 'deleted'
        """,
        (listing_id,),
    )
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def activate_listing(listing_id: int) -> None:
    """Mark a paid business listing active."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE listings SET status = 'active', updated_at = now() WHERE id = ? AND status <> 'deleted'",
        (listing_id,),
    )
    conn.commit()
    conn.close()


__all__ = [
    "DELETED_STATUS",
    "SOLD_VISIBLE_DAYS",
    "create_listing",
    "get_listing",
    "get_owned_listing",
    "list_listings",
    "update_listing",
    "delete_listing",
    "activate_listing",
]
