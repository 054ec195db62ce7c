import os

import pytest


if not os.getenv("DATABASE_URL"):
    pytest.skip("DATABASE_URL must be set for Postgres-only tests.", allow_module_level=True)

from core.db.base import get_conn
from core.db.listings import create_listing
from core.db.schema import TABLES, init_db
from core.db.users import create_or_update_user


def _truncate_all():
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("TRUNCATE " + ", ".join(TABLES) + " RESTART IDENTITY CASCADE")
    conn.commit()
    conn.close()


@pytest.fixture(autouse=True)
def _clean_db(monkeypatch):
    monkeypatch.delenv("AD_MARKET_TZ", raising=False)
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    init_db()
    _truncate_all()
    yield
    _truncate_all()


@pytest.fixture
def make_advertiser():
    def _make(email, title="Local shop"):
        user = create_or_update_user(email, "business_advertising")
        listing = create_listing(user["id"], {"type": "advertise", "title": title})
        return user, listing

    return _make
