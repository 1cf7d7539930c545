"""
Account repositories: profiles and entitlements.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.accounts import Profile, UserEntitlement
from .base import SQLModelRepository


class ProfileRepository(SQLModelRepository[Profile]):
    """Repository for user profiles."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Profile)

    async def get_or_create(self, user_id: str, email: Optional[str] = None) -> Profile:
        """Return the profile of ``user_id``, creating an empty one on first sight."""
        profile = await self.get_by_id(user_id)
        if profile:
            if email and not profile.email:
                profile.email = email
                return await self.update(profile)
            return profile
        return await self.create(Profile(id=user_id, email=email))

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Profile))
        return int(result.scalar_one())

    async def count_since(self, since: datetime) -> int:
        stmt = select(func.count()).select_from(Profile).where(Profile.created_at >= since)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())


class EntitlementRepository(SQLModelRepository[UserEntitlement]):
    """Repository for per-product entitlements."""

    order_by = "updated_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserEntitlement)

    async def list_for_user(self, user_id: str) -> List[UserEntitlement]:
        stmt = select(UserEntitlement).where(UserEntitlement.user_id == user_id)
        return await self.scalars(stmt)

    async def list_for_users(self, user_ids: List[str]) -> List[UserEntitlement]:
        if not user_ids:
            return []
        stmt = select(UserEntitlement).where(UserEntitlement.user_id.in_(user_ids))
        return await self.scalars(stmt)

    async def get_for_product(self, user_id: str, product: str) -> Optional[UserEntitlement]:
        stmt = select(UserEntitlement).where(
            (UserEntitlement.user_id == user_id) & (UserEntitlement.product == product)
        )
        return await self.first(stmt)

    async def get_trialing(self, user_id: str) -> Optional[UserEntitlement]:
        stmt = (
            select(UserEntitlement)
            .where((UserEntitlement.user_id == user_id) & (UserEntitlement.status == "trialing"))
            .order_by(UserEntitlement.trial_ends_at.desc())
        )
        return await self.first(stmt)

    async def upsert(self, user_id: str, product: str, **fields: Any) -> UserEntitlement:
        """Insert or update the entitlement keyed by ``(user_id, product)``."""
        entitlement = await self.get_for_product(user_id, product)
        if entitlement is None:
            entitlement = UserEntitlement(user_id=user_id, product=product, **fields)
            return await self.create(entitlement)
        for key, value in fields.items():
            setattr(entitlement, key, value)
        entitlement.updated_at = utc_now()
        return await self.update(entitlement)

    async def update_all_for_user(self, user_id: str, **fields: Any) -> List[UserEntitlement]:
        entitlements = await self.list_for_user(user_id)
        now = utc_now()
        for entitlement in entitlements:
            for key, value in fields.items():
                setattr(entitlement, key, value)
            entitlement.updated_at = now
            self.session.add(entitlement)
        await self.session.commit()
        return entitlements

    async def count_by_status(self) -> Dict[str, Dict[str, int]]:
        """Entitlement counts grouped by product and status."""
        stmt = select(UserEntitlement.product, UserEntitlement.status, func.count()).group_by(
            UserEntitlement.product, UserEntitlement.status
        )
        result = await self.session.execute(stmt)
        counts: Dict[str, Dict[str, int]] = {}
        for product, status, count in result.all():
            counts.setdefault(product, {})[status] = int(count)
        return counts
