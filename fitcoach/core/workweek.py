"""Program calendar in the coaching timezone.

Programs run Monday to Friday; weekends are rest days. Day boundaries, "today"
and streaks are evaluated in the coaching timezone (``Europe/Tallinn`` by
default), not in UTC. Naive datetimes are treated as UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Union

import pytz

DEFAULT_TIMEZONE = "Europe/Tallinn"

DateLike = Union[date, datetime]


def get_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    return pytz.timezone(name or DEFAULT_TIMEZONE)


def to_local(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert ``dt`` to the coaching timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(get_timezone(tz_name))


def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(timezone.utc).astimezone(get_timezone(tz_name))


def local_date(value: DateLike, tz_name: Optional[str] = None) -> date:
    if isinstance(value, datetime):
        return to_local(value, tz_name).date()
    return value


def date_key(value: DateLike, tz_name: Optional[str] = None) -> str:
    """Return the ``YYYY-MM-DD`` key of ``value`` in the coaching timezone."""
    return local_date(value, tz_name).isoformat()


def is_weekend(value: DateLike, tz_name: Optional[str] = None) -> bool:
    return local_date(value, tz_name).weekday() >= 5


def is_program_day(value: DateLike, tz_name: Optional[str] = None) -> bool:
    return not is_weekend(value, tz_name)


def is_monday(value: DateLike, tz_name: Optional[str] = None) -> bool:
    return local_date(value, tz_name).weekday() == 0


def week_start(value: DateLike, tz_name: Optional[str] = None) -> date:
    """Monday of the week containing ``value``."""
    day = local_date(value, tz_name)
    return day - timedelta(days=day.weekday())


def previous_workday(day: date) -> date:
    day -= timedelta(days=1)
    while day.weekday() >= 5:
        day -= timedelta(days=1)
    return day


def calc_program_streak(completed_keys: Iterable[str], today: date) -> int:
    """Count consecutive completed workdays ending today.

    On a weekend the count starts from the preceding Friday. Weekends never
    break a streak; the first missing workday ends it.

    Args:
        completed_keys: ``YYYY-MM-DD`` keys of completed program days.
        today: The current date in the coaching timezone.

    Returns:
        The streak length in workdays.
    """
    keys = set(completed_keys)
    if not keys:
        return 0

    current = today
    while current.weekday() >= 5:
        current -= timedelta(days=1)

    streak = 0
    while current.isoformat() in keys:
        streak += 1
        current = previous_workday(current)
    return streak
