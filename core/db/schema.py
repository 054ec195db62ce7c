"""
Schema helpers for Postgres.
"""
from __future__ import annotations

import logging
import os

from core.db.base import get_conn

log = logging.getLogger("hsc.db")

TABLES = [
    "admin_actions",
    "ad_payments",
    "ad_bids",
    "listing_analytics",
    "listings",
    "magic_link_tokens",
    "sessions",
    "users",
]


def init_db() -> None:
    """Create all tables and indexes if they don't exist."""
    conn = get_conn()
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS users(
            id SERIAL PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL DEFAULT 'user',
            active BOOLEAN NOT NULL DEFAULT TRUE,
            community_verified BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            email_verified_at TIMESTAMPTZ,
            last_login_at TIMESTAMPTZ
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS sessions(
            id TEXT PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL,
            last_seen_at TIMESTAMPTZ NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS magic_link_tokens(
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token TEXT NOT NULL UNIQUE,
            created_at TIMESTAMPTZ NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL,
            used_at TIMESTAMPTZ
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS listings(
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type TEXT NOT NULL
                CHECK (type IN ('sell', 'trade', 'announce', 'advertise', 'wanted')),
            category TEXT,
            title TEXT NOT NULL,
            price NUMERIC(10, 2),
            basic_description TEXT,
            detailed_description TEXT,
            image_urls TEXT[] NOT NULL DEFAULT '{}',
            featured_image_url TEXT,
            is_private BOOLEAN NOT NULL DEFAULT FALSE,
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'sold', 'inactive', 'pending', 'deleted')),
            clicks INTEGER NOT NULL DEFAULT 0,
            impression_count INTEGER NOT NULL DEFAULT 0,
            last_clicked_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS listing_analytics(
            id SERIAL PRIMARY KEY,
            listing_id INTEGER NOT NULL REFERENCES listings(id) ON DELETE CASCADE,
            event_type TEXT NOT NULL,
            event_timestamp TIMESTAMPTZ NOT NULL DEFAULT now(),
            user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            session_id TEXT,
            ip_address TEXT,
            user_agent TEXT,
            referrer TEXT,
            device_type TEXT,
            browser_name TEXT,
            time_on_listing INTEGER,
            scroll_depth INTEGER
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS ad_bids(
            id SERIAL PRIMARY KEY,
            listing_id INTEGER NOT NULL REFERENCES listings(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            weekly_bid_amount NUMERIC(10, 2) NOT NULL CHECK (weekly_bid_amount >= 5.00),
            max_auto_bid NUMERIC(10, 2)
                CHECK (max_auto_bid IS NULL OR max_auto_bid >= weekly_bid_amount),
            auto_renew BOOLEAN NOT NULL DEFAULT TRUE,
            current_position INTEGER,
            week_start DATE NOT NULL,
            week_end DATE NOT NULL CHECK (week_end = week_start + 6),
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'paused', 'cancelled', 'expired')),
            stripe_subscription_id TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
        """
    )
    # At most one active bid per listing and week; the upsert targets this index.
    cur.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS ad_bids_one_active_per_week
        ON ad_bids (listing_id, week_start)
        WHERE status = 'active'
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS ad_bids_week_status ON ad_bids (week_start, status)"
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS ad_payments(
            id SERIAL PRIMARY KEY,
            listing_id INTEGER NOT NULL REFERENCES listings(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount NUMERIC(10, 2) NOT NULL,
            currency TEXT NOT NULL DEFAULT 'usd',
            stripe_session_id TEXT NOT NULL UNIQUE,
            stripe_payment_intent_id TEXT,
            stripe_subscription_id TEXT,
            payment_type TEXT NOT NULL DEFAULT 'one_time',
            auto_renew BOOLEAN NOT NULL DEFAULT FALSE,
            status TEXT NOT NULL DEFAULT 'completed',
            bid_id INTEGER REFERENCES ad_bids(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS admin_actions(
            id SERIAL PRIMARY KEY,
            admin_user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            target_user_id INTEGER,
            action_type TEXT NOT NULL,
            action_description TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )

    # Databases created before soft deletes and fulfilment tracking.
    cur.execute("ALTER TABLE listings DROP CONSTRAINT IF EXISTS listings_status_check")
    cur.execute(
        """
        ALTER TABLE listings ADD CONSTRAINT listings_status_check
        CHECK (status IN ('active', 'sold', 'inactive', 'pending', 'deleted'))
        """
    )
    cur.execute("ALTER TABLE ad_bids ADD COLUMN IF NOT EXISTS stripe_subscription_id TEXT")
    cur.execute(
        "ALTER TABLE ad_payments ADD COLUMN IF NOT EXISTS "
        "bid_id INTEGER REFERENCES ad_bids(id) ON DELETE SET NULL"
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS ad_bids_subscription ON ad_bids (stripe_subscription_id)"
    )

    conn.commit()
    conn.close()

    ensure_admins_from_env()


def admin_emails() -> set[str]:
    """Emails listed in ADMIN_EMAILS (comma-separated), lowercased."""
    raw = os.getenv("ADMIN_EMAILS", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def ensure_admins_from_env() -> None:
    """
    Promote existing accounts listed in ADMIN_EMAILS to admin.
    New admins are created on their first magic-link sign-in.
    """
    emails = admin_emails()
    if not emails:
        return

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "UPDATE users SET role = 'admin' WHERE email = ANY(?) AND role <> 'admin'",
        (list(emails),),
    )
    promoted = cur.rowcount
    conn.commit()
    conn.close()
    if promoted:
        log.info("Promoted %s account(s) to admin from ADMIN_EMAILS", promoted)


__all__ = [
    "TABLES",
    "init_db",
    "admin_emails",
    "ensure_admins_from_env",
]
