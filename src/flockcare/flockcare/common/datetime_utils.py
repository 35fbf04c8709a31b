from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Accept YYYY-MM-DD or a full ISO timestamp."""
    value = value.strip()
    if len(value) == 10:
        return datetime.combine(parse_iso_date(value), datetime.min.time())
    return datetime.fromisoformat(value)


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    """Current naive wall-clock time, server-local or in ``tz``.

    Matches what ``start_of_day`` stores for the same ``tz``, so day
    arithmetic between the two never mixes zones.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if tz is None:
        return datetime.now()
    return datetime.now(tz).replace(tzinfo=None)


def resolve_zone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    return ZoneInfo(name)


def start_of_day(value: datetime | date, tz: Optional[tzinfo] = None) -> datetime:
    """Floor a timestamp to midnight of its calendar day.

    Without ``tz`` the server-local wall clock decides the day. With ``tz`` the
    timestamp is converted into that zone first (naive input is read as
    server-local time) and the result is returned as naive wall-clock time in
    that zone.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time())

    if tz is not None:
        value = value.astimezone(tz).replace(tzinfo=None)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """floor((later - earlier) / one day)."""
    return (later - earlier).days
