"""Week window utilities for weekly toasts.

All calendar arithmetic happens in the user's configured timezone. Instants
handed to the database are always converted back to UTC.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the ZoneInfo for an IANA name, falling back to UTC for unknown names."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (sqlite hands them back that way)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(dt: datetime, tz: ZoneInfo) -> date:
    """Calendar date of an instant as seen in tz."""
    return ensure_utc(dt).astimezone(tz).date()


def local_today(tz: ZoneInfo, now: datetime | None = None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    return local_date(now, tz)


def local_midnight_utc(d: date, tz: ZoneInfo) -> datetime:
    """UTC instant of 00:00 on date d in tz."""
    return datetime.combine(d, time.min, tzinfo=tz).astimezone(timezone.utc)


def week_bounds_utc(week_start: date, week_end: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Half-open UTC range [week_start 00:00, week_end 00:00) for local dates."""
    if week_start >= week_end:
        msg = f"week_start ({week_start}) must be before week_end ({week_end})"
        raise ValueError(msg)
    return local_midnight_utc(week_start, tz), local_midnight_utc(week_end, tz)


def _python_weekday(toast_day: int) -> int:
    """Convert 0=Sunday..6=Saturday into Python's 0=Monday..6=Sunday."""
    if not 0 <= toast_day <= 6:
        msg = f"toast day must be between 0 and 6, got {toast_day}"
        raise ValueError(msg)
    return (toast_day - 1) % 7


def most_recent_toast_day(today: date, toast_day: int) -> date:
    """The latest date on or before today that falls on toast_day."""
    days_back = (today.weekday() - _python_weekday(toast_day)) % 7
    return today - timedelta(days=days_back)


def get_week_window(tz_name: str | None, toast_day: int, now: datetime | None = None) -> tuple[date, date]:
    """Window [T - 7 days, T) where T is the most recent toast day in the user's timezone."""
    tz = resolve_timezone(tz_name)
    toast_date = most_recent_toast_day(local_today(tz, now), toast_day)
    return toast_date - timedelta(days=7), toast_date


def get_next_toast_date(tz_name: str | None, toast_day: int, now: datetime | None = None) -> date:
    """Next occurrence of the toast day strictly after today."""
    today = local_today(resolve_timezone(tz_name), now)
    days_ahead = (_python_weekday(toast_day) - today.weekday()) % 7
    return today + timedelta(days=days_ahead or 7)


def is_toast_day(tz_name: str | None, toast_day: int, now: datetime | None = None) -> bool:
    """True when today, in the user's timezone, is their toast day."""
    today = local_today(resolve_timezone(tz_name), now)
    return today.weekday() == _python_weekday(toast_day)


def get_week_boundaries(tz_name: str | None, now: datetime | None = None) -> tuple[datetime, datetime]:
    """UTC range for the Monday-based calendar week containing now, in the user's timezone."""
    tz = resolve_timezone(tz_name)
    today = local_today(tz, now)
    monday = today - timedelta(days=today.weekday())
    return week_bounds_utc(monday, monday + timedelta(days=7), tz)


def get_month_boundaries(tz_name: str | None, now: datetime | None = None) -> tuple[datetime, datetime]:
    """UTC range for the calendar month containing now, in the user's timezone."""
    tz = resolve_timezone(tz_name)
    today = local_today(tz, now)
    first = today.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return week_bounds_utc(first, next_first, tz)
