"""
Service for the admin dashboard: users, entitlements, analytics and program
assignment.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.accounts import EntitlementUpdate, ProfileWithEntitlements, UserEntitlement
from fitcoach.core.database.entities.programs import ClientProgram, ClientProgramCreate
from fitcoach.core.database.repositories import (
    EntitlementRepository,
    ProfileRepository,
    ProgramRepository,
    SupportRepository,
    WorkoutSessionRepository,
)
from fitcoach.core.errors import NotFoundError
from fitcoach.server.schemas import AnalyticsSummary

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.profiles = ProfileRepository(session)
        self.entitlements = EntitlementRepository(session)

    async def list_users(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[ProfileWithEntitlements]:
        """Profiles, newest first, each with its entitlements."""
        profiles = await self.profiles.list(limit=limit, offset=offset)
        by_user: dict[str, list] = {}
        for entitlement in await self.entitlements.list_for_users([p.id for p in profiles]):
            by_user.setdefault(entitlement.user_id, []).append(entitlement.model_dump())
        return [
            ProfileWithEntitlements.model_validate({**p.model_dump(), "entitlements": by_user.get(p.id, [])})
            for p in profiles
        ]

    async def set_entitlement(self, user_id: str, payload: EntitlementUpdate, admin_id: str) -> UserEntitlement:
        """
        Grant or adjust one product entitlement of a user.

        Raises:
            NotFoundError: No profile for ``user_id``.
        """
        if await self.profiles.get_by_id(user_id) is None:
            raise NotFoundError(f"Profile {user_id} not found")
        fields = payload.model_dump(exclude={"product"})
        entitlement = await self.entitlements.upsert(user_id, payload.product, source="admin", **fields)
        logger.info(
            f"Admin {admin_id} set {payload.product} entitlement of {user_id} to {payload.status}"
            f"{' (paused)' if payload.paused else ''}"
        )
        return entitlement

    async def analytics_summary(self, now: Optional[datetime] = None) -> AnalyticsSummary:
        now = now or utc_now()
        week_ago = now - timedelta(days=7)
        counts = await self.entitlements.count_by_status()
        return AnalyticsSummary(
            total_users=await self.profiles.count(),
            new_users_7d=await self.profiles.count_since(week_ago),
            active_entitlements={product: by_status.get("active", 0) for product, by_status in counts.items()},
            trialing_entitlements={product: by_status.get("trialing", 0) for product, by_status in counts.items()},
            sessions_7d=await WorkoutSessionRepository(self.session).count_since(week_ago),
            open_conversations=await SupportRepository(self.session).count_by_status("active"),
            generated_at=now,
        )

    async def assign_program(self, payload: ClientProgramCreate, admin_id: str) -> ClientProgram:
        if await self.profiles.get_by_id(payload.assigned_to) is None:
            raise NotFoundError(f"Profile {payload.assigned_to} not found")
        program = await ProgramRepository(self.session).create_with_days(payload, assigned_by=admin_id)
        logger.info(f"Program {program.id} assigned to {payload.assigned_to} by {admin_id}")
        return program
