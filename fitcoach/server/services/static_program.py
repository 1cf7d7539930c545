"""
Service for the shared 20-day static program.

Days are completed one per weekday, in order, in the coaching timezone. The
next day to do is derived from how many days the user has completed so far,
so a missed weekday does not skip content.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.static_program import StaticProgramDay, StaticStart, UserProgress
from fitcoach.core.database.repositories import StaticProgramRepository
from fitcoach.core.errors import NotFoundError, ValidationFailedError
from fitcoach.core.program import Exercise, convert_legacy_program_day, day_totals, normalize_exercises
from fitcoach.core.workweek import calc_program_streak, is_program_day, local_date, now_local
from fitcoach.server.schemas import StaticCompletion, StaticDayView, StaticStatus

logger = logging.getLogger(__name__)

PROGRAM_LENGTH_DAYS = 20
DAYS_PER_WEEK = 5


def program_position(completed_count: int) -> tuple[int, int, int]:
    """``(current_day, cycle, week)`` after ``completed_count`` completions."""
    current_day = completed_count % PROGRAM_LENGTH_DAYS + 1
    cycle = completed_count // PROGRAM_LENGTH_DAYS
    week = (current_day - 1) // DAYS_PER_WEEK + 1
    return current_day, cycle, week


def day_exercises(day: StaticProgramDay) -> List[Exercise]:
    if day.exercises:
        return normalize_exercises(day.exercises)
    if day.legacy:
        return convert_legacy_program_day(day.legacy)
    return []


def default_start_monday(today: date) -> date:
    """This week's Monday on workdays, next Monday on weekends."""
    monday = today - timedelta(days=today.weekday())
    return monday + timedelta(days=7) if today.weekday() >= 5 else monday


class StaticProgramService:
    """Status, start and daily completion of the static program."""

    def __init__(self, session: AsyncSession, tz_name: Optional[str] = None):
        self.session = session
        self.tz_name = tz_name
        self.repository = StaticProgramRepository(session)

    def _today(self, now: Optional[datetime]) -> date:
        return local_date(now, self.tz_name) if now is not None else now_local(self.tz_name).date()

    async def _day_view(self, day_number: int) -> Optional[StaticDayView]:
        day = await self.repository.get_day(day_number)
        if day is None:
            return None
        exercises = day_exercises(day)
        return StaticDayView(
            day=day.day, title=day.title, hint=day.hint, exercises=exercises, totals=day_totals(exercises)
        )

    async def status(self, user_id: str, now: Optional[datetime] = None) -> StaticStatus:
        today = self._today(now)
        start = await self.repository.get_start(user_id)
        progress = await self.repository.list_progress(user_id)
        completed_count = len(progress)
        completed_today = any(p.day_key == today.isoformat() for p in progress)
        program_day = is_program_day(today)
        current_day, cycle, week = program_position(completed_count)
        started = start is not None and start.start_monday <= today

        return StaticStatus(
            started=started,
            start_monday=start.start_monday if start else None,
            today=today,
            is_program_day=program_day,
            completed_count=completed_count,
            current_day=current_day,
            cycle=cycle,
            week=week,
            completed_today=completed_today,
            can_complete_today=started and program_day and not completed_today,
            streak=calc_program_streak((p.day_key for p in progress), today),
            day=await self._day_view(current_day),
        )

    async def start(self, user_id: str, start_monday: Optional[date] = None, now: Optional[datetime] = None) -> StaticStart:
        """
        Record the Monday the user starts on. Starting again moves the start date.

        Raises:
            ValidationFailedError: ``start_monday`` is not a Monday.
        """
        start_monday = start_monday or default_start_monday(self._today(now))
        if start_monday.weekday() != 0:
            raise ValidationFailedError(f"{start_monday.isoformat()} is not a Monday")
        start = await self.repository.get_start(user_id)
        if start is None:
            start = StaticStart(user_id=user_id, start_monday=start_monday)
        else:
            start.start_monday = start_monday
        start = await self.repository.save_start(start)
        logger.info(f"Static program start for {user_id} set to {start_monday.isoformat()}")
        return start

    async def complete_today(self, user_id: str, now: Optional[datetime] = None) -> StaticCompletion:
        """
        Complete the next program day.

        Raises:
            ValidationFailedError: Not started, a weekend, or already done today.
            NotFoundError: The program day has no content.
        """
        today = self._today(now)
        status = await self.status(user_id, now)
        if not status.started:
            raise ValidationFailedError("The static program has not been started")
        if not status.is_program_day:
            raise ValidationFailedError("Program days run Monday to Friday")
        if status.completed_today:
            raise ValidationFailedError("Today's program day is already completed")

        day = await self.repository.get_day(status.current_day)
        if day is None:
            raise NotFoundError(f"Static program day {status.current_day} not found", code="PROGRAM_NOT_FOUND")
        totals = day_totals(day_exercises(day))
        day_key = today.isoformat()
        await self.repository.create(
            UserProgress(
                user_id=user_id,
                programday_id=day.id,
                day_key=day_key,
                done=True,
                total_sets=totals.sets,
                total_reps=totals.reps,
                completed_at=utc_now(),
            )
        )
        completed_keys = [p.day_key for p in await self.repository.list_progress(user_id)]
        logger.info(f"User {user_id} completed static day {day.day} on {day_key}")
        return StaticCompletion(
            day=day.day,
            day_key=day_key,
            total_sets=totals.sets,
            total_reps=totals.reps,
            completed_count=len(completed_keys),
            streak=calc_program_streak(completed_keys, today),
        )
