from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import app.api as api_module
from app import auth_utils
from app.routes import admin


@pytest.fixture
def client():
    return TestClient(api_module.app)


@pytest.fixture
def as_admin(monkeypatch, admin_user):
    monkeypatch.setattr(auth_utils, "get_current_user", lambda req: (admin_user, "tok"))
    return admin_user


@pytest.fixture
def audit(monkeypatch):
    actions = []
    monkeypatch.setattr(
        admin,
        "record_admin_action",
        lambda admin_id, action, target_user_id=None, description=None: actions.append(
            (admin_id, action, target_user_id)
        ),
    )
    return actions


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/admin/dashboard"),
        ("post", "/api/admin/dashboard"),
        ("get", "/api/admin/users"),
        ("post", "/api/admin/users/action"),
        ("get", "/api/admin/actions"),
    ],
)
def test_admin_routes_guarded(client, monkeypatch, member, method, path):
    monkeypatch.setattr(auth_utils, "get_current_user", lambda req: (None, None))
    kwargs = {"json": {}} if method == "post" else {}
    assert getattr(client, method)(path, **kwargs).status_code == 401

    monkeypatch.setattr(auth_utils, "get_current_user", lambda req: (member, "tok"))
    resp = getattr(client, method)(path, **kwargs)
    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin access required"}


def test_dashboard(client, as_admin, monkeypatch):
    monkeypatch.setattr(
        admin,
        "get_dashboard_stats",
        lambda start, end, day: {
            "users": {"total": 3},
            "listings": {"total": 2, "by_type": {}, "by_status": {}},
            "ad_market": {"week_start": start, "active_bids": 1, "top_bid": Decimal("10.00")},
            "top_listings": [],
        },
    )
    body = client.get("/api/admin/dashboard").json()
    assert body["users"]["total"] == 3
    assert body["ad_market"]["top_bid"] == 10.0
    assert date.fromisoformat(body["ad_market"]["week_start"]).weekday() == 0


def test_dashboard_actions(client, as_admin, audit, monkeypatch):
    monkeypatch.setattr(admin, "cleanup_expired_tokens", lambda: {"magic_links_removed": 2, "sessions_removed": 1})
    monkeypatch.setattr(admin, "recalculate_week", lambda week: [{"id": 1}, {"id": 2}])
    monkeypatch.setattr(admin, "get_table_counts", lambda: {"users": 3})

    body = client.post("/api/admin/dashboard", json={"action": "cleanup_tokens"}).json()
    assert body["magic_links_removed"] == 2

    body = client.post("/api/admin/dashboard", json={"action": "recalculate_positions"}).json()
    assert body["active_bids"] == 2

    body = client.post("/api/admin/dashboard", json={"action": "get_system_info"}).json()
    assert body["system"]["table_counts"] == {"users": 3}

    assert client.post("/api/admin/dashboard", json={"action": "drop_tables"}).status_code == 400
    assert [a[1] for a in audit] == ["cleanup_tokens", "recalculate_positions"]


def test_list_users(client, as_admin, monkeypatch):
    seen = {}

    def fake_list(user_filter, search, limit, offset):
        seen["args"] = (user_filter, search, limit, offset)
        return [{"id": 2, "email": "x@y.co", "listing_count": 1}]

    monkeypatch.setattr(admin, "list_users", fake_list)
    body = client.get("/api/admin/users?filter=banned&search=%20x%20&limit=1000").json()
    assert seen["args"] == ("banned", "x", 100, 0)
    assert body["users"][0]["listing_count"] == 1
    assert client.get("/api/admin/users?filter=robots").status_code == 400


def test_user_actions(client, as_admin, audit, monkeypatch):
    changes = []
    monkeypatch.setattr(admin, "get_user_by_id", lambda uid: {"id": uid, "email": f"u{uid}@x.co"} if uid != 404 else None)
    monkeypatch.setattr(admin, "set_user_active", lambda uid, active: changes.append((uid, active)))
    monkeypatch.setattr(admin, "set_user_role", lambda uid, role: changes.append((uid, role)))

    body = client.post("/api/admin/users/action", json={"action": "ban", "user_ids": [2, as_admin["id"], 404]}).json()
    assert [r["success"] for r in body["results"]] == [True, False, False]
    assert body["succeeded"] == 1
    assert changes == [(2, False)]
    assert audit == [(as_admin["id"], "ban", 2)]

    body = client.post("/api/admin/users/action", json={"action": "remove_admin", "user_ids": [as_admin["id"]]}).json()
    assert body["results"][0]["success"] is False

    client.post("/api/admin/users/action", json={"action": "make_admin", "user_ids": [3]})
    assert changes[-1] == (3, "admin")


def test_user_action_validation(client, as_admin):
    assert client.post("/api/admin/users/action", json={"action": "delete", "user_ids": [2]}).status_code == 400
    assert client.post("/api/admin/users/action", json={"action": "ban", "user_ids": []}).status_code == 400


def test_action_log_limit_is_clamped(client, as_admin, monkeypatch):
    seen = {}

    def fake_list(limit):
        seen["limit"] = limit
        return [{"id": 1, "action_type": "ban", "admin_user_id": 1, "target_user_id": 7}]

    monkeypatch.setattr(admin, "list_admin_actions", fake_list)

    resp = client.get("/api/admin/actions?limit=5000")
    assert resp.status_code == 200
    assert seen["limit"] == 200
    assert resp.json()["actions"][0]["action_type"] == "ban"
