from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from core.ads import week
from core.errors import ValidationError


@pytest.mark.parametrize(
    "day, expected_start",
    [
        (date(2024, 1, 8), date(2024, 1, 8)),  # Monday
        (date(2024, 1, 10), date(2024, 1, 8)),  # Wednesday
        (date(2024, 1, 14), date(2024, 1, 8)),  # Sunday
        (date(2024, 1, 15), date(2024, 1, 15)),  # next Monday
        (date(2024, 3, 3), date(2024, 2, 26)),  # across a month (leap year)
    ],
)
def test_week_for_date_runs_monday_to_sunday(day, expected_start):
    w = week.week_for_date(day)
    assert w.start == expected_start
    assert w.start.weekday() == 0
    assert (w.end - w.start).days == 6
    assert w.contains(day)


def test_week_bounds_uses_market_timezone():
    # Sunday night in UTC is already Monday in Auckland.
    now = datetime(2024, 1, 14, 23, 30, tzinfo=timezone.utc)
    assert week.week_bounds(now, timezone.utc).start == date(2024, 1, 8)
    assert week.week_bounds(now, ZoneInfo("Pacific/Auckland")).start == date(2024, 1, 15)


def test_naive_datetimes_are_utc():
    naive = datetime(2024, 1, 14, 23, 30)
    aware = naive.replace(tzinfo=timezone.utc)
    assert week.week_bounds(naive, timezone.utc) == week.week_bounds(aware, timezone.utc)


def test_market_timezone_from_env(monkeypatch):
    monkeypatch.delenv("AD_MARKET_TZ", raising=False)
    assert week.market_timezone() is timezone.utc

    monkeypatch.setenv("AD_MARKET_TZ", "America/Chicago")
    assert week.market_timezone() == ZoneInfo("America/Chicago")

    monkeypatch.setenv("AD_MARKET_TZ", "Not/AZone")
    with pytest.raises(RuntimeError):
        week.market_timezone()


def test_parse_week_start_normalizes_to_monday():
    w = week.parse_week_start("2024-01-10")
    assert w.as_dict() == {"week_start": "2024-01-08", "week_end": "2024-01-14"}


def test_parse_week_start_empty_is_current_week(monkeypatch):
    monkeypatch.delenv("AD_MARKET_TZ", raising=False)
    assert week.parse_week_start(None) == week.week_bounds()
    assert week.parse_week_start("  ") == week.week_bounds()


@pytest.mark.parametrize("value", ["2024-13-01", "next week", "01/08/2024"])
def test_parse_week_start_rejects_bad_dates(value):
    with pytest.raises(ValidationError) as exc:
        week.parse_week_start(value)
    assert "YYYY-MM-DD" in exc.value.message
