"""
Week window helpers for the weekly ad market.

A week runs Monday 00:00 through Sunday 23:59 in the market timezone
(AD_MARKET_TZ, default UTC). Naive datetimes are treated as UTC.
"""
from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.errors import ValidationError

WEEK_LENGTH_DAYS = 7


class Week(NamedTuple):
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_dict(self) -> dict:
        return {"week_start": self.start.isoformat(), "week_end": self.end.isoformat()}


def market_timezone() -> tzinfo:
    name = (os.getenv("AD_MARKET_TZ") or "UTC").strip()
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"AD_MARKET_TZ is not a known timezone: {name}") from exc


def _local(now: Optional[datetime], tz: Optional[tzinfo]) -> datetime:
    tz = tz or market_timezone()
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of `now` in the market timezone."""
    return _local(now, tz).date()


def week_for_date(day: date) -> Week:
    # weekday(): Monday=0 .. Sunday=6, so Sunday steps back six days.
    start = day - timedelta(days=day.weekday())
    return Week(start, start + timedelta(days=WEEK_LENGTH_DAYS - 1))


def week_bounds(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> Week:
    """Monday-Sunday window containing `now` (default: the current instant)."""
    return week_for_date(today(now, tz))


def parse_week_start(value: Optional[str]) -> Week:
    """
    Parse a `week_start`/`date` query value. Any day is normalized to the
    Monday of its week; empty means the current week.
    """
    if value is None or not str(value).strip():
        return week_bounds()
    try:
        day = date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise ValidationError("Dates must be in YYYY-MM-DD format") from exc
    return week_for_date(day)


__all__ = [
    "Week",
    "WEEK_LENGTH_DAYS",
    "market_timezone",
    "today",
    "week_for_date",
    "week_bounds",
    "parse_week_start",
]
