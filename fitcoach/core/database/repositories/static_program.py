"""
Static program repositories: program days, starts and completions.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.static_program import StaticProgramDay, StaticStart, UserProgress
from .base import SQLModelRepository


class StaticProgramRepository(SQLModelRepository[UserProgress]):
    """Repository for the shared static program and per-user progress."""

    order_by = "completed_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserProgress)

    async def get_day(self, day: int) -> Optional[StaticProgramDay]:
        return await self.first(select(StaticProgramDay).where(StaticProgramDay.day == day))

    async def get_start(self, user_id: str) -> Optional[StaticStart]:
        return await self.session.get(StaticStart, user_id)

    async def save_start(self, start: StaticStart) -> StaticStart:
        self.session.add(start)
        await self.session.commit()
        await self.session.refresh(start)
        return start

    async def list_progress(self, user_id: str) -> List[UserProgress]:
        stmt = (
            select(UserProgress)
            .where((UserProgress.user_id == user_id) & (UserProgress.done == True))  # noqa: E712
            .order_by(UserProgress.completed_at.desc())
        )
        return await self.scalars(stmt)

    async def get_progress_on(self, user_id: str, day_key: str) -> Optional[UserProgress]:
        stmt = select(UserProgress).where((UserProgress.user_id == user_id) & (UserProgress.day_key == day_key))
        return await self.first(stmt)
