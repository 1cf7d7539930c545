"""
API endpoints for custom daily habits.

The caller keeps up to four active habits and ticks them off once per day.
Removed habits are archived and can be restored while there is room.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from fitcoach.core.database.entities.habits import CustomHabitCreate, CustomHabitRead
from fitcoach.core.habits import HabitStats
from fitcoach.server.services.deps import CurrentUserDep, SessionDep
from fitcoach.server.services.habits import HabitService

router = APIRouter(tags=["habits"])


@router.get(
    "",
    response_model=list[CustomHabitRead],
    summary="List Habits",
    description="Active habits in display order with today's check-in. New users get the default habits.",
    response_description="The active habits.",
)
async def list_habits(user: CurrentUserDep, session: SessionDep) -> list[CustomHabitRead]:
    return await HabitService(session).list_habits(user.id)


@router.post(
    "",
    response_model=CustomHabitRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Habit",
    description="Add a habit at the end of the list.",
    response_description="The new habit.",
    responses={422: {"description": "Blank title or the habit limit is reached"}},
)
async def create_habit(payload: CustomHabitCreate, user: CurrentUserDep, session: SessionDep) -> CustomHabitRead:
    return await HabitService(session).create(payload, user.id)


@router.get(
    "/archived",
    response_model=list[CustomHabitRead],
    summary="List Archived Habits",
    description="Archived habits, most recently archived first.",
    response_description="The archived habits.",
)
async def list_archived(user: CurrentUserDep, session: SessionDep) -> list[CustomHabitRead]:
    return await HabitService(session).list_archived(user.id)


@router.get(
    "/stats",
    response_model=HabitStats,
    summary="Habit Statistics",
    description="Completions and completion rates of the active habits over the last 30 days.",
    response_description="The habit statistics.",
)
async def habit_stats(user: CurrentUserDep, session: SessionDep) -> HabitStats:
    return await HabitService(session).stats(user.id)


@router.post(
    "/{habit_id}/toggle",
    response_model=CustomHabitRead,
    summary="Toggle Habit",
    description="Check the habit off for today, or undo today's check-in.",
    response_description="The habit with its new state for today.",
    responses={404: {"description": "Habit not found or archived"}},
)
async def toggle_habit(habit_id: int, user: CurrentUserDep, session: SessionDep) -> CustomHabitRead:
    return await HabitService(session).toggle(habit_id, user.id)


@router.post(
    "/{habit_id}/archive",
    response_model=CustomHabitRead,
    summary="Archive Habit",
    responses={404: {"description": "Habit not found"}},
)
async def archive_habit(habit_id: int, user: CurrentUserDep, session: SessionDep) -> CustomHabitRead:
    return await HabitService(session).archive(habit_id, user.id)


@router.post(
    "/{habit_id}/restore",
    response_model=CustomHabitRead,
    summary="Restore Habit",
    responses={
        404: {"description": "Habit not found"},
        422: {"description": "The habit limit is reached"},
    },
)
async def restore_habit(habit_id: int, user: CurrentUserDep, session: SessionDep) -> CustomHabitRead:
    return await HabitService(session).restore(habit_id, user.id)
