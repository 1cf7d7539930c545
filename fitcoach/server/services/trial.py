"""
Service starting the one-off 7-day trial.

The trial grants a ``static`` entitlement in ``trialing`` state. It can be
consumed once per profile; ``Profile.trial_used`` records that it was.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.clients import AuthClient
from fitcoach.core.access import EntitlementStatus, Product, entitlement_is_live
from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.accounts import UserEntitlement
from fitcoach.core.database.repositories import EntitlementRepository, ProfileRepository
from fitcoach.core.errors import TrialAlreadyUsedError
from fitcoach.core.plans import TRIAL_DAYS
from fitcoach.server.schemas import TrialStartResponse

logger = logging.getLogger(__name__)


class TrialService:
    """Starts trials for new signups and for existing accounts."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.profiles = ProfileRepository(session)
        self.entitlements = EntitlementRepository(session)

    async def start_once(self, user_id: str, email: Optional[str] = None, now: Optional[datetime] = None) -> UserEntitlement:
        """
        Start the trial for ``user_id`` unless it was already used.

        Raises:
            TrialAlreadyUsedError: The profile consumed its trial before, or
                already holds live ``static`` access.
        """
        now = now or utc_now()
        profile = await self.profiles.get_or_create(user_id, email)
        if profile.trial_used:
            raise TrialAlreadyUsedError(f"User {user_id} already used the trial")

        existing = await self.entitlements.get_for_product(user_id, Product.STATIC.value)
        if existing is not None and entitlement_is_live(existing, now):
            raise TrialAlreadyUsedError(f"User {user_id} already has static access")

        trial_ends_at = now + timedelta(days=TRIAL_DAYS)
        entitlement = await self.entitlements.upsert(
            user_id,
            Product.STATIC.value,
            status=EntitlementStatus.TRIALING.value,
            paused=False,
            started_at=now,
            expires_at=None,
            trial_ends_at=trial_ends_at,
            source="trial",
            note=f"{TRIAL_DAYS}-day trial",
        )
        profile.trial_used = True
        profile.trial_ends_at = trial_ends_at
        await self.profiles.update(profile)
        logger.info(f"Trial started for {user_id}, ends {trial_ends_at.isoformat()}")
        return entitlement

    async def signup_with_trial(self, auth_client: AuthClient, email: str, password: str) -> TrialStartResponse:
        """
        Create a confirmed account and start its trial.

        Raises:
            ValidationFailedError: The auth service rejected the email or password.
            ProviderError: The auth service is unreachable or misconfigured.
        """
        logger.info(f"Creating trial account for {email}")
        auth_user = await auth_client.create_user(email, password, email_confirm=True)
        entitlement = await self.start_once(auth_user.id, auth_user.email or email)
        return TrialStartResponse(
            user_id=auth_user.id,
            product=entitlement.product,
            trial_ends_at=entitlement.trial_ends_at,
        )
