import types

import pytest
from fastapi.testclient import TestClient

import app.api as api_module
from app import auth_utils
from app.routes import auth


@pytest.fixture
def client():
    return TestClient(api_module.app)


def test_send_magic_link_rejects_bad_email(client):
    resp = client.post("/api/auth/send-magic-link", json={"email": "not-an-email"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Valid email address is required"}


def test_send_magic_link_email_failure_is_generic(client, monkeypatch):
    monkeypatch.setattr(auth, "create_or_update_user", lambda email, context: {"id": 3, "email": email})
    monkeypatch.setattr(auth, "create_magic_link_token", lambda user_id: "tok")

    def broken(to, link, minutes):
        raise RuntimeError("SMTP auth failed for secret@example")

    monkeypatch.setattr(auth, "send_magic_link_email", broken)
    resp = client.post("/api/auth/send-magic-link", json={"email": "owner@gmail.com"})
    assert resp.status_code == 500
    assert "SMTP" not in resp.json()["error"]


def test_send_magic_link_passes_business_context(client, monkeypatch):
    seen = {}

    def fake_user(email, context):
        seen["args"] = (email, context)
        return {"id": 3, "email": email}

    monkeypatch.setattr(auth, "create_or_update_user", fake_user)
    monkeypatch.setattr(auth, "create_magic_link_token", lambda user_id: "tok")
    monkeypatch.setattr(auth, "send_magic_link_email", lambda to, link, minutes: None)
    resp = client.post(
        "/api/auth/send-magic-link",
        json={"email": " Owner@Gmail.com ", "context": "business_advertising"},
    )
    assert resp.status_code == 200
    assert seen["args"] == ("owner@gmail.com", "business_advertising")


def test_verify_sets_session_cookie(client, monkeypatch):
    verified = []
    monkeypatch.setattr(auth, "consume_magic_link_token", lambda token: {"user_id": 3} if token == "good" else None)
    monkeypatch.setattr(auth, "get_user_by_id", lambda uid: {"id": uid, "email": "a@b.co", "active": True})
    monkeypatch.setattr(auth, "mark_user_email_verified", lambda uid: verified.append(uid))
    monkeypatch.setattr(auth, "create_session", lambda uid: "session-token")

    resp = client.get("/api/auth/verify?token=good", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    cookie = resp.headers["set-cookie"]
    assert "hsc_session=session-token" in cookie
    assert "HttpOnly" in cookie
    assert verified == [3]


def test_verify_rejects_bad_token(client, monkeypatch):
    monkeypatch.setattr(auth, "consume_magic_link_token", lambda token: None)
    resp = client.get("/api/auth/verify?token=used", follow_redirects=False)
    assert resp.status_code == 401


def test_verify_rejects_banned_user(client, monkeypatch):
    monkeypatch.setattr(auth, "consume_magic_link_token", lambda token: {"user_id": 3})
    monkeypatch.setattr(auth, "get_user_by_id", lambda uid: {"id": uid, "email": "a@b.co", "active": False})
    monkeypatch.setattr(auth, "create_session", lambda uid: pytest.fail("banned users get no session"))
    assert client.get("/api/auth/verify?token=t", follow_redirects=False).status_code == 403


def test_me(client, monkeypatch, admin_user):
    monkeypatch.setattr(auth, "get_current_user", lambda req: (None, None))
    assert client.get("/api/auth/me").json() == {"authenticated": False, "user": None}

    monkeypatch.setattr(auth, "get_current_user", lambda req: (admin_user, "tok"))
    assert client.get("/api/auth/me").json() == {
        "authenticated": True,
        "user": {"id": 1, "email": "admin@example.com", "role": "admin", "is_admin": True},
    }


def test_logout_deletes_session(monkeypatch, member):
    deleted = []
    monkeypatch.setattr(auth, "get_current_user", lambda req: (member, "tok"))
    monkeypatch.setattr(auth, "delete_session", lambda token: deleted.append(token))

    resp = auth.logout(types.SimpleNamespace(cookies={}))
    assert resp.status_code == 200
    assert deleted == ["tok"]
    assert "hsc_session=" in resp.headers["set-cookie"]


def test_get_current_user_drops_banned_sessions(monkeypatch):
    deleted = []
    monkeypatch.setattr(auth_utils, "get_session", lambda token: {"user_id": 3})
    monkeypatch.setattr(auth_utils, "get_user_by_id", lambda uid: {"id": uid, "active": False})
    monkeypatch.setattr(auth_utils, "delete_session", lambda token: deleted.append(token))
    monkeypatch.setattr(auth_utils, "touch_session", lambda token: pytest.fail("must not refresh"))

    req = types.SimpleNamespace(cookies={auth_utils.SESSION_COOKIE_NAME: "tok"})
    assert auth_utils.get_current_user(req) == (None, "tok")
    assert deleted == ["tok"]


def test_get_current_user_refreshes_valid_session(monkeypatch, member):
    touched = []
    monkeypatch.setattr(auth_utils, "get_session", lambda token: {"user_id": member["id"]})
    monkeypatch.setattr(auth_utils, "get_user_by_id", lambda uid: member)
    monkeypatch.setattr(auth_utils, "touch_session", lambda token: touched.append(token))

    req = types.SimpleNamespace(cookies={auth_utils.SESSION_COOKIE_NAME: "tok"})
    assert auth_utils.get_current_user(req) == (member, "tok")
    assert touched == ["tok"]
