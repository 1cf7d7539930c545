"""
Service resolving what a user may open.

Combines the profile role and the stored entitlements with the rules in
``fitcoach.core.access``, and computes the XP level shown on the dashboard.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.access import (
    AccessDecision,
    ProgramAccess,
    TrialStatus,
    evaluate_access,
    program_access,
    trial_status,
)
from fitcoach.core.database.entities.accounts import ProfileWithEntitlements
from fitcoach.core.database.repositories import (
    EntitlementRepository,
    HabitRepository,
    ProfileRepository,
    ProgramRepository,
    StaticProgramRepository,
    WorkoutSessionRepository,
)
from fitcoach.core.errors import NotFoundError
from fitcoach.core.levels import UserXP, calculate_user_xp

logger = logging.getLogger(__name__)


class AccessService:
    """Access decisions, trial countdowns and levels for one user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.entitlements = EntitlementRepository(session)

    async def decision_for(
        self, user_id: str, role: Optional[str], now: Optional[datetime] = None
    ) -> AccessDecision:
        entitlements = await self.entitlements.list_for_user(user_id)
        decision = evaluate_access(role, entitlements, now)
        logger.debug(f"Access for {user_id}: {decision.reason} static={decision.can_static} pt={decision.can_pt}")
        return decision

    async def trial_for(self, user_id: str, now: Optional[datetime] = None) -> TrialStatus:
        return trial_status(await self.entitlements.get_trialing(user_id), now)

    async def program_access_for(self, user_id: str, role: Optional[str]) -> ProgramAccess:
        decision = await self.decision_for(user_id, role)
        has_assigned = await ProgramRepository(self.session).has_assigned(user_id)
        return program_access(decision, has_assigned)

    async def profile_for(self, user_id: str) -> ProfileWithEntitlements:
        profile = await ProfileRepository(self.session).get_by_id(user_id)
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        entitlements = await self.entitlements.list_for_user(user_id)
        return ProfileWithEntitlements.model_validate(
            {**profile.model_dump(), "entitlements": [e.model_dump() for e in entitlements]}
        )

    async def level_for(self, user_id: str) -> UserXP:
        sessions = await WorkoutSessionRepository(self.session).list_finished_for_user(user_id)
        office_resets = await StaticProgramRepository(self.session).list_progress(user_id)
        habits = HabitRepository(self.session)
        habit_ids = await habits.list_active_ids(user_id)
        habit_logs = await habits.list_logs(user_id, habit_ids)
        xp = calculate_user_xp(sessions, office_resets, habit_ids, habit_logs)
        logger.info(f"User {user_id} XP calculated: total={xp.total_xp} level={xp.level}")
        return xp
