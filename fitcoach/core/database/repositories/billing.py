"""
Billing repositories: subscribers, payments and processed webhook events.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.billing import Payment, StripeEvent, Subscriber
from .base import SQLModelRepository


class SubscriberRepository(SQLModelRepository[Subscriber]):
    """Repository for payment provider customers."""

    order_by = "updated_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Subscriber)

    async def get_by_user(self, user_id: str) -> Optional[Subscriber]:
        return await self.first(select(Subscriber).where(Subscriber.user_id == user_id))

    async def get_by_customer(self, customer_id: str) -> Optional[Subscriber]:
        return await self.first(select(Subscriber).where(Subscriber.stripe_customer_id == customer_id))

    async def upsert(self, user_id: str, **fields: Any) -> Subscriber:
        subscriber = await self.get_by_user(user_id)
        if subscriber is None:
            return await self.create(Subscriber(user_id=user_id, **fields))
        for key, value in fields.items():
            setattr(subscriber, key, value)
        subscriber.updated_at = utc_now()
        return await self.update(subscriber)


class PaymentRepository(SQLModelRepository[Payment]):
    """Repository for paid invoices."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Payment)

    async def get_by_invoice(self, invoice_id: str) -> Optional[Payment]:
        return await self.first(select(Payment).where(Payment.stripe_invoice_id == invoice_id))


class StripeEventRepository(SQLModelRepository[StripeEvent]):
    """Repository of webhook event ids that were already applied."""

    order_by = "processed_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StripeEvent)

    async def seen(self, event_id: str) -> bool:
        return await self.get_by_id(event_id) is not None

    async def record(self, event_id: str, event_type: str) -> StripeEvent:
        return await self.create(StripeEvent(id=event_id, type=event_type))
