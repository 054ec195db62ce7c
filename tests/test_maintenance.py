from datetime import date
from decimal import Decimal

from core.ads import maintenance
from core.ads.week import Week
from core.errors import MarketRecalculationError


def test_recalculate_uses_week_containing_given_date(monkeypatch, capsys):
    seen = {}

    def fake_recalculate(week):
        seen["week"] = week
        return [{"current_position": 1, "listing_id": 5, "weekly_bid_amount": Decimal("10.00")}]

    monkeypatch.setattr(maintenance, "recalculate_week", fake_recalculate)

    assert maintenance.main(["recalculate", "--week", "2024-01-10"]) == 0
    assert seen["week"] == Week(date(2024, 1, 8), date(2024, 1, 14))
    out = capsys.readouterr().out
    assert "1 active bid(s)" in out
    assert "#1 listing 5" in out


def test_recalculate_failure_returns_nonzero(monkeypatch, capsys):
    def failing(week):
        raise MarketRecalculationError()

    monkeypatch.setattr(maintenance, "recalculate_week", failing)

    assert maintenance.main(["recalculate"]) == 1
    assert "Market is temporarily unavailable" in capsys.readouterr().err


def test_bad_week_date_is_reported(capsys):
    assert maintenance.main(["recalculate", "--week", "next-monday"]) == 1
    assert "YYYY-MM-DD" in capsys.readouterr().err


def test_cleanup_tokens_prints_counts(monkeypatch, capsys):
    monkeypatch.setattr(
        maintenance,
        "cleanup_expired_tokens",
        lambda: {"magic_links_removed": 3, "sessions_removed": 2},
    )

    assert maintenance.main(["cleanup-tokens"]) == 0
    assert "Removed 3 magic link(s) and 2 session(s)" in capsys.readouterr().out


def test_market_prints_standings(monkeypatch, capsys):
    state = {
        "week_start": date(2024, 1, 8),
        "week_end": date(2024, 1, 14),
        "current_top_bid": Decimal("12.00"),
        "price_to_beat": Decimal("17.00"),
        "total_active_bids": 1,
        "positions": [
            {"current_position": 1, "weekly_bid_amount": Decimal("12.00"), "listing": {"title": "Corner Cafe"}}
        ],
    }
    monkeypatch.setattr(maintenance, "get_market_state", lambda week: state)

    assert maintenance.main(["market"]) == 0
    out = capsys.readouterr().out
    assert "price to beat 17.00" in out
    assert "#1 Corner Cafe" in out
