"""
API endpoints for the shared 20-day static program.

Program days run Monday to Friday in the coaching timezone; one day can be
completed per weekday.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from fitcoach.server.core.config import settings
from fitcoach.server.schemas import StaticCompletion, StaticStartRequest, StaticStatus
from fitcoach.server.services.deps import SessionDep, StaticUserDep
from fitcoach.server.services.static_program import StaticProgramService

router = APIRouter(tags=["static-program"])


@router.get(
    "/status",
    response_model=StaticStatus,
    summary="Get Static Program Status",
    description="Start date, the next day to complete with its exercises, completion count and streak.",
    response_description="The caller's static program status.",
    responses={403: {"description": "No static program access"}},
)
async def get_status(user: StaticUserDep, session: SessionDep) -> StaticStatus:
    return await StaticProgramService(session, settings.timezone).status(user.id)


@router.post(
    "/start",
    response_model=StaticStatus,
    summary="Start Static Program",
    description="Set the Monday the caller starts on. Calling again moves the start date.",
    response_description="The status after starting.",
    responses={422: {"description": "The given date is not a Monday"}},
)
async def start_program(
    user: StaticUserDep, session: SessionDep, payload: Optional[StaticStartRequest] = None
) -> StaticStatus:
    service = StaticProgramService(session, settings.timezone)
    await service.start(user.id, payload.start_monday if payload else None)
    return await service.status(user.id)


@router.post(
    "/complete-today",
    response_model=StaticCompletion,
    summary="Complete Today",
    description="Mark the next program day as done for today.",
    response_description="The completed day with its totals and the new streak.",
    responses={
        404: {"description": "The program day has no content"},
        422: {"description": "Not started, a weekend, or already completed today"},
    },
)
async def complete_today(user: StaticUserDep, session: SessionDep) -> StaticCompletion:
    return await StaticProgramService(session, settings.timezone).complete_today(user.id)
