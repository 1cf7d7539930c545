"""
Service for custom daily habits.

Users tick off up to four habits per day; a day where all four are logged
earns habit XP in ``fitcoach.core.levels``. A user with no habits at all gets
the default set on first read. Removing a habit archives it so its history
survives and it can be restored later.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database import utc_now
from fitcoach.core.database.entities.habits import CustomHabit, CustomHabitCreate, CustomHabitRead
from fitcoach.core.database.repositories import HabitRepository
from fitcoach.core.errors import NotFoundError, ValidationFailedError
from fitcoach.core.habits import DEFAULT_HABITS, HabitStats, can_add_habit, habit_stats, window_start
from fitcoach.core.levels import MAX_HABITS

logger = logging.getLogger(__name__)


def _read(habit: CustomHabit, done: bool = False) -> CustomHabitRead:
    view = CustomHabitRead.model_validate(habit)
    view.done = done
    return view


class HabitService:
    """Habit list, daily check-ins, archive and statistics for one user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.habits = HabitRepository(session)

    async def _ensure_defaults(self, user_id: str) -> List[CustomHabit]:
        active = await self.habits.list_for_user(user_id)
        if active or await self.habits.list_for_user(user_id, active=False):
            return active
        for order, (title, icon) in enumerate(DEFAULT_HABITS, start=1):
            self.session.add(CustomHabit(user_id=user_id, title=title, icon_name=icon, sort_order=order))
        await self.session.commit()
        logger.info(f"Default habits created for {user_id}")
        return await self.habits.list_for_user(user_id)

    async def _habit(self, habit_id: int, user_id: str) -> CustomHabit:
        habit = await self.habits.get_for_user(habit_id, user_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit

    async def list_habits(self, user_id: str, today: Optional[date] = None) -> List[CustomHabitRead]:
        """Active habits in display order with today's completion."""
        today = today or utc_now().date()
        habits = await self._ensure_defaults(user_id)
        logs = await self.habits.list_logs(user_id, [h.id for h in habits], since=today, until=today)
        done = {log.habit_id for log in logs}
        return [_read(h, h.id in done) for h in habits]

    async def create(self, payload: CustomHabitCreate, user_id: str) -> CustomHabitRead:
        """
        Add a habit at the end of the list.

        Raises:
            ValidationFailedError: Blank title, or the user already has the maximum of active habits.
        """
        title = payload.title.strip()
        if not title:
            raise ValidationFailedError("Habit title is required", code="REQUIRED_FIELD_MISSING")
        active = await self.habits.list_for_user(user_id)
        if not can_add_habit(len(active)):
            raise ValidationFailedError(
                f"At most {MAX_HABITS} active habits are allowed",
                code="HABIT_LIMIT_REACHED",
                details={"max_habits": MAX_HABITS},
            )
        sort_order = max((h.sort_order for h in active), default=0) + 1
        habit = await self.habits.create(
            CustomHabit(user_id=user_id, title=title, icon_name=payload.icon_name, sort_order=sort_order)
        )
        logger.info(f"Habit {habit.id} added by {user_id}")
        return _read(habit)

    async def toggle(self, habit_id: int, user_id: str, today: Optional[date] = None) -> CustomHabitRead:
        """Log the habit for today, or remove today's log when it is already there."""
        today = today or utc_now().date()
        habit = await self._habit(habit_id, user_id)
        if not habit.is_active:
            raise NotFoundError(f"Habit {habit_id} is archived")
        if await self.habits.remove_log(user_id, habit.id, today):
            return _read(habit, False)
        await self.habits.add_log(user_id, habit.id, today)
        return _read(habit, True)

    async def archive(self, habit_id: int, user_id: str) -> CustomHabitRead:
        habit = await self._habit(habit_id, user_id)
        habit.is_active = False
        habit.updated_at = utc_now()
        return _read(await self.habits.update(habit))

    async def restore(self, habit_id: int, user_id: str) -> CustomHabitRead:
        """
        Bring an archived habit back.

        Raises:
            ValidationFailedError: The user already has the maximum of active habits.
        """
        habit = await self._habit(habit_id, user_id)
        if habit.is_active:
            return _read(habit)
        if not can_add_habit(len(await self.habits.list_active_ids(user_id))):
            raise ValidationFailedError(
                f"At most {MAX_HABITS} active habits are allowed",
                code="HABIT_LIMIT_REACHED",
                details={"max_habits": MAX_HABITS},
            )
        habit.is_active = True
        habit.updated_at = utc_now()
        return _read(await self.habits.update(habit))

    async def list_archived(self, user_id: str) -> List[CustomHabitRead]:
        return [_read(h) for h in await self.habits.list_for_user(user_id, active=False)]

    async def stats(self, user_id: str, today: Optional[date] = None) -> HabitStats:
        """Completion statistics of the active habits over the last 30 days."""
        today = today or utc_now().date()
        habits = await self.habits.list_for_user(user_id)
        logs = await self.habits.list_logs(user_id, [h.id for h in habits], since=window_start(today), until=today)
        return habit_stats(habits, logs)
