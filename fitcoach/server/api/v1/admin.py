"""
API endpoints for the admin dashboard.

Users and their entitlements, a headline analytics summary and program
assignment. Every endpoint requires the admin role.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, status

from fitcoach.core.database.entities.accounts import EntitlementRead, EntitlementUpdate, ProfileWithEntitlements
from fitcoach.core.database.entities.programs import ClientProgramCreate, ClientProgramRead
from fitcoach.server.schemas import AnalyticsSummary
from fitcoach.server.services.admin import AdminService
from fitcoach.server.services.deps import AdminUserDep, SessionDep

router = APIRouter(tags=["admin"])


@router.get(
    "/users",
    response_model=list[ProfileWithEntitlements],
    summary="List Users",
    description="Profiles, newest first, each with its product entitlements.",
    response_description="A list of users.",
    responses={403: {"description": "Caller is not an admin"}},
)
async def list_users(
    admin: AdminUserDep,
    session: SessionDep,
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: Optional[int] = Query(None, ge=0),
) -> list[ProfileWithEntitlements]:
    return await AdminService(session).list_users(limit=limit, offset=offset)


@router.post(
    "/users/{user_id}/entitlements",
    response_model=EntitlementRead,
    summary="Set Entitlement",
    description="Grant or adjust one product entitlement of a user.",
    response_description="The stored entitlement.",
    responses={404: {"description": "User not found"}},
)
async def set_entitlement(
    user_id: str, payload: EntitlementUpdate, admin: AdminUserDep, session: SessionDep
) -> EntitlementRead:
    """
    Set an entitlement.

    - **product**: static or pt.
    - **status**: active, trialing, inactive, cancelled or past_due.
    - **paused**: Paused entitlements grant no access.
    - **expires_at** / **trial_ends_at**: Optional end dates.
    """
    entitlement = await AdminService(session).set_entitlement(user_id, payload, admin.id)
    return EntitlementRead.model_validate(entitlement)


@router.get(
    "/analytics/summary",
    response_model=AnalyticsSummary,
    summary="Analytics Summary",
    description="User counts, live entitlements and trials per product, recent workouts and open conversations.",
    response_description="The summary.",
)
async def analytics_summary(admin: AdminUserDep, session: SessionDep) -> AnalyticsSummary:
    return await AdminService(session).analytics_summary()


@router.post(
    "/programs",
    response_model=ClientProgramRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Program",
    description="Create a program with its days and exercises and assign it to a user.",
    response_description="The created program.",
    responses={404: {"description": "User not found"}},
)
async def assign_program(payload: ClientProgramCreate, admin: AdminUserDep, session: SessionDep) -> ClientProgramRead:
    program = await AdminService(session).assign_program(payload, admin.id)
    return ClientProgramRead.model_validate(program)
