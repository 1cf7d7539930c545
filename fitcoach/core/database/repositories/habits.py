"""
Habit repositories.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.habits import CustomHabit, HabitLog
from .base import SQLModelRepository


class HabitRepository(SQLModelRepository[CustomHabit]):
    """Repository for custom habits and their daily logs."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CustomHabit)

    async def list_for_user(self, user_id: str, *, active: bool = True) -> List[CustomHabit]:
        """Active habits in display order, or archived ones most recently archived first."""
        stmt = select(CustomHabit).where((CustomHabit.user_id == user_id) & (CustomHabit.is_active == active))
        if active:
            stmt = stmt.order_by(CustomHabit.sort_order, CustomHabit.id)
        else:
            stmt = stmt.order_by(CustomHabit.updated_at.desc())
        return await self.scalars(stmt)

    async def get_for_user(self, habit_id: int, user_id: str) -> Optional[CustomHabit]:
        stmt = select(CustomHabit).where((CustomHabit.id == habit_id) & (CustomHabit.user_id == user_id))
        return await self.first(stmt)

    async def list_active_ids(self, user_id: str) -> List[int]:
        stmt = select(CustomHabit.id).where(
            (CustomHabit.user_id == user_id) & (CustomHabit.is_active == True)  # noqa: E712
        )
        return await self.scalars(stmt)

    async def list_logs(
        self,
        user_id: str,
        habit_ids: List[int],
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> List[HabitLog]:
        if not habit_ids:
            return []
        stmt = select(HabitLog).where((HabitLog.user_id == user_id) & (HabitLog.habit_id.in_(habit_ids)))
        if since is not None:
            stmt = stmt.where(HabitLog.logged_on >= since)
        if until is not None:
            stmt = stmt.where(HabitLog.logged_on <= until)
        return await self.scalars(stmt)

    async def get_log(self, user_id: str, habit_id: int, day: date) -> Optional[HabitLog]:
        stmt = select(HabitLog).where(
            (HabitLog.user_id == user_id) & (HabitLog.habit_id == habit_id) & (HabitLog.logged_on == day)
        )
        return await self.first(stmt)

    async def add_log(self, user_id: str, habit_id: int, day: date) -> HabitLog:
        log = HabitLog(user_id=user_id, habit_id=habit_id, logged_on=day)
        self.session.add(log)
        await self.session.commit()
        await self.session.refresh(log)
        return log

    async def remove_log(self, user_id: str, habit_id: int, day: date) -> bool:
        stmt = delete(HabitLog).where(
            (HabitLog.user_id == user_id) & (HabitLog.habit_id == habit_id) & (HabitLog.logged_on == day)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0
