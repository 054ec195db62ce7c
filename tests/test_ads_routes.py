from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import app.api as api_module
from app import auth_utils
from app.routes import ads
from core.ads.bidding import BidResult
from core.errors import MarketRecalculationError, NotFound, PersistenceError


@pytest.fixture
def client():
    return TestClient(api_module.app)


@pytest.fixture
def signed_in(monkeypatch, member):
    monkeypatch.setattr(auth_utils, "get_current_user", lambda req: (member, "session-token"))
    return member


def test_bids_require_sign_in(client, monkeypatch):
    monkeypatch.setattr(auth_utils, "get_current_user", lambda req: (None, None))
    assert client.get("/api/ad-bids").status_code == 401
    resp = client.post("/api/ad-bids", json={"listing_id": 1, "weekly_bid_amount": 10})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Authentication required"}


def test_list_my_bids(client, signed_in, monkeypatch):
    seen = {}

    def fake(user_id, include_expired):
        seen["args"] = (user_id, include_expired)
        return [{"id": 3, "weekly_bid_amount": Decimal("10.00"), "week_start": date(2024, 1, 8)}]

    monkeypatch.setattr(ads, "get_user_bids", fake)
    resp = client.get("/api/ad-bids?include_expired=true")
    assert resp.status_code == 200
    assert resp.json()["bids"] == [{"id": 3, "weekly_bid_amount": 10.0, "week_start": "2024-01-08"}]
    assert seen["args"] == (signed_in["id"], True)


def test_place_bid_missing_fields(client, signed_in):
    resp = client.post("/api/ad-bids", json={"listing_id": 4})
    assert resp.status_code == 400
    assert "required" in resp.json()["error"]


def test_place_bid_below_minimum(client, signed_in):
    resp = client.post("/api/ad-bids", json={"listing_id": 4, "weekly_bid_amount": 3})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Minimum bid is $5.00 per week"}


def test_place_bid_ceiling_below_amount(client, signed_in):
    resp = client.post("/api/ad-bids", json={"listing_id": 4, "weekly_bid_amount": 10, "max_auto_bid": 6})
    assert resp.status_code == 400


def test_place_bid_created_and_updated(client, signed_in, monkeypatch):
    outcomes = iter([True, False])

    def fake_submit(user_id, listing_id, amount, max_auto_bid=None, auto_renew=True):
        return BidResult({"id": 11, "listing_id": listing_id, "current_position": 1}, next(outcomes))

    monkeypatch.setattr(ads, "submit_bid", fake_submit)

    first = client.post("/api/ad-bids", json={"listing_id": 4, "weekly_bid_amount": 10}).json()
    assert first["created"] is True
    assert first["message"] == "Bid placed successfully"

    second = client.post("/api/ad-bids", json={"listing_id": 4, "weekly_bid_amount": 12}).json()
    assert second["created"] is False
    assert second["message"] == "Bid updated successfully"


def test_place_bid_on_foreign_listing(client, signed_in, monkeypatch):
    def fake_submit(*a, **k):
        raise NotFound("Listing not found or not authorized")

    monkeypatch.setattr(ads, "submit_bid", fake_submit)
    resp = client.post("/api/ad-bids", json={"listing_id": 4, "weekly_bid_amount": 10})
    assert resp.status_code == 404


def test_cancel_bid(client, signed_in, monkeypatch):
    assert client.delete("/api/ad-bids").status_code == 400

    monkeypatch.setattr(ads, "cancel_bid", lambda user_id, bid_id: {"id": bid_id, "status": "cancelled"})
    resp = client.delete("/api/ad-bids?bid_id=12")
    assert resp.status_code == 200
    assert resp.json()["bid"] == {"id": 12, "status": "cancelled"}


def test_cancel_foreign_bid(client, signed_in, monkeypatch):
    def fake_cancel(user_id, bid_id):
        raise NotFound("Bid not found or not authorized")

    monkeypatch.setattr(ads, "cancel_bid", fake_cancel)
    resp = client.delete("/api/ad-bids?bid_id=12")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Bid not found or not authorized"}


def test_ad_positions(client, monkeypatch):
    monkeypatch.setattr(
        ads,
        "get_market_state",
        lambda week_start: {
            "current_top_bid": Decimal("12.00"),
            "price_to_beat": Decimal("17.00"),
            "total_active_bids": 2,
            "positions": [],
            "week_start": date(2024, 1, 8),
            "week_end": date(2024, 1, 14),
        },
    )
    body = client.get("/api/ad-positions").json()
    assert body["success"] is True
    assert body["market_state"]["current_top_bid"] == 12.0
    assert body["market_state"]["price_to_beat"] == 17.0
    assert body["market_state"]["week_start"] == "2024-01-08"


def test_ad_positions_bad_week(client):
    resp = client.get("/api/ad-positions?week_start=not-a-date")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Dates must be in YYYY-MM-DD format"}


def test_slots_position_must_be_number(client):
    assert client.get("/api/weekly-ads/slots?position=top").status_code == 400


def test_slots_passes_query(client, monkeypatch):
    seen = {}

    def fake(for_date, position):
        seen["args"] = (for_date, position)
        return {"slots": [], "summary": {}, "pricing": {}, "quote": {"position": 2}}

    monkeypatch.setattr(ads, "get_slots", fake)
    body = client.get("/api/weekly-ads/slots?date=2024-01-10&position=2").json()
    assert seen["args"] == ("2024-01-10", 2)
    assert body["quote"] == {"position": 2}


def test_market_unavailable_is_503(client, monkeypatch):
    def broken(week_start):
        raise MarketRecalculationError()

    monkeypatch.setattr(ads, "get_market_state", broken)
    resp = client.get("/api/ad-positions")
    assert resp.status_code == 503
    assert "temporarily unavailable" in resp.json()["error"]


def test_storage_failure_is_generic_500(client, monkeypatch):
    def broken(week_start):
        raise PersistenceError("relation ad_bids does not exist")

    monkeypatch.setattr(ads, "get_market_state", broken)
    resp = client.get("/api/ad-positions")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Something went wrong, please try again."}
