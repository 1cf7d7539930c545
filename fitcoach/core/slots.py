"""Consultation services and booking availability."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

from .access import as_utc
from .workweek import get_timezone

BOOKING_WEEKDAYS = (2, 5)  # Wednesday, Saturday
DAY_OPENS = time(15, 0)
DAY_CLOSES = time(19, 0)
SLOT_STEP_MINUTES = 30


class Service(BaseModel):
    id: str
    name: str
    price_cents: int
    duration_minutes: int
    currency: str = "eur"


SERVICES: dict[str, Service] = {
    "initial_assessment": Service(
        id="initial_assessment", name="Esmane hindamine", price_cents=8000, duration_minutes=30
    ),
    "personal_program": Service(
        id="personal_program", name="Isiklik programm", price_cents=15000, duration_minutes=60
    ),
    "monthly_support": Service(
        id="monthly_support", name="Kuutugi", price_cents=25000, duration_minutes=45
    ),
}


class Slot(BaseModel):
    start: datetime
    end: datetime


DateBound = Union[date, datetime]


def _as_local_date(value: DateBound, tz) -> date:
    if isinstance(value, datetime):
        return as_utc(value).astimezone(tz).date()
    return value


def _overlaps(slot_start: datetime, slot_end: datetime, busy: Iterable[Any]) -> bool:
    for b in busy:
        b_start = as_utc(b.start if hasattr(b, "start") else b[0])
        b_end = as_utc(b.end if hasattr(b, "end") else b[1])
        if b_start is None or b_end is None:
            continue
        if slot_start < b_end and b_start < slot_end:
            return True
    return False


def generate_available_slots(
    start: DateBound,
    end: DateBound,
    duration_minutes: int = 60,
    busy: Iterable[Any] = (),
    tz_name: Optional[str] = None,
) -> list[Slot]:
    """Bookable slots between ``start`` and ``end`` (inclusive, by local date).

    Consultations run on Wednesdays and Saturdays from 15:00 to 19:00 local
    time with a start every 30 minutes; a slot must end by 19:00. Slots that
    overlap any ``busy`` interval (objects with ``start``/``end`` or pairs)
    are dropped. Returned datetimes are UTC.
    """
    tz = get_timezone(tz_name)
    busy = list(busy)
    first = _as_local_date(start, tz)
    last = _as_local_date(end, tz)
    length = timedelta(minutes=duration_minutes)

    slots: list[Slot] = []
    day = first
    while day <= last:
        if day.weekday() in BOOKING_WEEKDAYS:
            closes = tz.localize(datetime.combine(day, DAY_CLOSES))
            cursor = tz.localize(datetime.combine(day, DAY_OPENS))
            while cursor < closes:
                slot_end = cursor + length
                if slot_end <= closes:
                    s = cursor.astimezone(timezone.utc)
                    e = slot_end.astimezone(timezone.utc)
                    if not _overlaps(s, e, busy):
                        slots.append(Slot(start=s, end=e))
                cursor += timedelta(minutes=SLOT_STEP_MINUTES)
        day += timedelta(days=1)
    return slots


def is_available_slot(
    slot: Slot,
    duration_minutes: int,
    busy: Iterable[Any] = (),
    tz_name: Optional[str] = None,
) -> bool:
    """Whether ``slot`` is one ``generate_available_slots`` offers for its day.

    The slot must start on the consultation grid, last exactly
    ``duration_minutes`` and not overlap any ``busy`` interval.
    """
    start = as_utc(slot.start)
    end = as_utc(slot.end)
    if start is None or end is None or end - start != timedelta(minutes=duration_minutes):
        return False
    offered = generate_available_slots(start, start, duration_minutes, busy, tz_name)
    return any(s.start == start and s.end == end for s in offered)
