"""
Program repositories: assigned programs with their days and items, workout
sessions, set logs and progression events.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.programs import (
    ClientDay,
    ClientItem,
    ClientProgram,
    ClientProgramCreate,
    ProgressionEvent,
    SetLog,
    WorkoutSession,
)
from .base import SQLModelRepository


class ProgramRepository(SQLModelRepository[ClientProgram]):
    """Repository for assigned client programs."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientProgram)

    async def list_for_user(self, user_id: str) -> List[ClientProgram]:
        stmt = (
            select(ClientProgram)
            .where(ClientProgram.assigned_to == user_id)
            .order_by(ClientProgram.created_at.desc())
        )
        return await self.scalars(stmt)

    async def has_assigned(self, user_id: str) -> bool:
        stmt = select(ClientProgram.id).where(ClientProgram.assigned_to == user_id).limit(1)
        return await self.first(stmt) is not None

    async def list_auto_progression_candidates(self) -> List[ClientProgram]:
        stmt = select(ClientProgram).where(
            (ClientProgram.status == "active")
            & (ClientProgram.is_active == True)  # noqa: E712
            & (ClientProgram.auto_progression_enabled == True)  # noqa: E712
        )
        return await self.scalars(stmt)

    async def list_active(self) -> List[ClientProgram]:
        stmt = select(ClientProgram).where(ClientProgram.status == "active")
        return await self.scalars(stmt)

    async def get_days(self, program_id: int) -> List[ClientDay]:
        stmt = select(ClientDay).where(ClientDay.client_program_id == program_id).order_by(ClientDay.day_order)
        return await self.scalars(stmt)

    async def get_day(self, day_id: int) -> Optional[ClientDay]:
        return await self.session.get(ClientDay, day_id)

    async def get_items(self, day_ids: List[int]) -> Dict[int, List[ClientItem]]:
        """Items grouped by day id, each list ordered by ``order_in_day``."""
        grouped: Dict[int, List[ClientItem]] = {day_id: [] for day_id in day_ids}
        if not day_ids:
            return grouped
        stmt = select(ClientItem).where(ClientItem.client_day_id.in_(day_ids)).order_by(ClientItem.order_in_day)
        for item in await self.scalars(stmt):
            grouped.setdefault(item.client_day_id, []).append(item)
        return grouped

    async def list_items(self, program_id: int) -> List[ClientItem]:
        stmt = (
            select(ClientItem)
            .join(ClientDay, ClientItem.client_day_id == ClientDay.id)
            .where(ClientDay.client_program_id == program_id)
            .order_by(ClientDay.day_order, ClientItem.order_in_day)
        )
        return await self.scalars(stmt)

    async def get_item(self, program_id: int, item_id: int) -> Optional[ClientItem]:
        stmt = (
            select(ClientItem)
            .join(ClientDay, ClientItem.client_day_id == ClientDay.id)
            .where((ClientDay.client_program_id == program_id) & (ClientItem.id == item_id))
        )
        return await self.first(stmt)

    async def create_with_days(self, payload: ClientProgramCreate, assigned_by: Optional[str]) -> ClientProgram:
        """Persist a program together with all of its days and items."""
        program = ClientProgram.model_validate(
            payload.model_dump(exclude={"days"}), update={"assigned_by": assigned_by}
        )
        self.session.add(program)
        await self.session.flush()
        for day_payload in payload.days:
            day = ClientDay(
                client_program_id=program.id,
                title=day_payload.title,
                day_order=day_payload.day_order,
                weekday=day_payload.weekday,
                note=day_payload.note,
            )
            self.session.add(day)
            await self.session.flush()
            for item_payload in day_payload.items:
                self.session.add(ClientItem(client_day_id=day.id, **item_payload.model_dump()))
        await self.session.commit()
        await self.session.refresh(program)
        return program


class WorkoutSessionRepository(SQLModelRepository[WorkoutSession]):
    """Repository for workout sessions."""

    order_by = "started_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WorkoutSession)

    async def list_finished_for_user(self, user_id: str) -> List[WorkoutSession]:
        stmt = select(WorkoutSession).where(
            (WorkoutSession.user_id == user_id) & (WorkoutSession.ended_at.is_not(None))
        )
        return await self.scalars(stmt)

    async def get_open(self, user_id: str, day_id: int) -> Optional[WorkoutSession]:
        """The user's unfinished session on ``day_id``, if one is in progress."""
        stmt = (
            select(WorkoutSession)
            .where(
                (WorkoutSession.user_id == user_id)
                & (WorkoutSession.client_day_id == day_id)
                & (WorkoutSession.ended_at.is_(None))
            )
            .order_by(WorkoutSession.started_at.desc())
        )
        return await self.first(stmt)

    async def count_finished_for_program(self, program_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(WorkoutSession)
            .where((WorkoutSession.client_program_id == program_id) & (WorkoutSession.ended_at.is_not(None)))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_since(self, since: datetime) -> int:
        stmt = select(func.count()).select_from(WorkoutSession).where(WorkoutSession.started_at >= since)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())


class SetLogRepository(SQLModelRepository[SetLog]):
    """Repository for logged sets."""

    order_by = "marked_done_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SetLog)

    async def list_for_session(self, session_id: int) -> List[SetLog]:
        stmt = select(SetLog).where(SetLog.session_id == session_id).order_by(SetLog.marked_done_at)
        return await self.scalars(stmt)

    async def get_for_set(self, session_id: int, item_id: int, set_number: int) -> Optional[SetLog]:
        stmt = select(SetLog).where(
            (SetLog.session_id == session_id) & (SetLog.client_item_id == item_id) & (SetLog.set_number == set_number)
        )
        return await self.first(stmt)

    async def list_for_item_since(self, item_id: int, since: datetime) -> List[SetLog]:
        stmt = (
            select(SetLog)
            .where((SetLog.client_item_id == item_id) & (SetLog.marked_done_at >= since))
            .order_by(SetLog.marked_done_at)
        )
        return await self.scalars(stmt)


class ProgressionEventRepository(SQLModelRepository[ProgressionEvent]):
    """Repository for applied progression changes."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ProgressionEvent)

    async def list_for_program(self, program_id: int) -> List[ProgressionEvent]:
        stmt = (
            select(ProgressionEvent)
            .where(ProgressionEvent.program_id == program_id)
            .order_by(ProgressionEvent.created_at.desc())
        )
        return await self.scalars(stmt)
