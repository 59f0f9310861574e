"""Time helpers shared by the scheduling modules."""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Protocol

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
_HHMM_RE = re.compile(HHMM_PATTERN)


class Clock(Protocol):
    """Source of the current local time."""

    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` string."""
    if not _HHMM_RE.match(value):
        raise ValueError(f"Time must be in HH:MM format: {value!r}")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_hhmm(value: time | datetime) -> str:
    return value.strftime("%H:%M")


def at_time(day: date, hhmm: str | time, tz: tzinfo | None = None) -> datetime:
    """Datetime for ``hhmm`` on ``day``, in ``tz`` when the clock is aware."""
    if isinstance(hhmm, str):
        hhmm = parse_hhmm(hhmm)
    return datetime.combine(day, hhmm, tzinfo=tz)


def weekday_index(day: date) -> int:
    """Weekday with 0 = Sunday through 6 = Saturday."""
    return (day.weekday() + 1) % 7


def coerce_date(value: date | datetime | str) -> date:
    """Accept a date, a datetime or an ISO-8601 string and return the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.split("T")[0])


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60
