"""
Booking repositories.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.bookings import BookingRequest
from .base import SQLModelRepository


class BookingRepository(SQLModelRepository[BookingRequest]):
    """Repository for consultation booking requests."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, BookingRequest)

    async def get_by_payment_intent(self, intent_id: str) -> Optional[BookingRequest]:
        stmt = select(BookingRequest).where(BookingRequest.stripe_payment_intent_id == intent_id)
        return await self.first(stmt)

    async def list_confirmed_between(self, start: datetime, end: datetime) -> List[BookingRequest]:
        """Confirmed bookings whose start falls in ``[start, end]``; they block slots."""
        stmt = select(BookingRequest).where(
            (BookingRequest.status == "confirmed")
            & (BookingRequest.preferred_date.is_not(None))
            & (BookingRequest.preferred_date >= start)
            & (BookingRequest.preferred_date <= end)
        )
        return await self.scalars(stmt)
