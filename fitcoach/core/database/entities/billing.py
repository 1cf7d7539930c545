"""
Billing entity models.

Subscribers link a user to the payment provider customer. Payments record
paid invoices. Processed webhook event ids are stored so a redelivered event
is applied only once.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class Subscriber(Base, table=True):
    """
    Table: subscribers
    """

    __tablename__ = "subscribers"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, unique=True)
    email: Optional[str] = Field(default=None, index=True)
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    subscribed: bool = Field(default=False)
    subscription_tier: Optional[str] = Field(default=None)
    subscription_end: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    status: str = Field(default="inactive", description="active, inactive, past_due or cancelled")
    paused: bool = Field(default=False)
    plan: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )

    def __repr__(self) -> str:
        return f"Subscriber(user_id={self.user_id}, status={self.status})"


class Payment(Base, table=True):
    """
    Table: payments
    """

    __tablename__ = "payments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    stripe_invoice_id: Optional[str] = Field(default=None, unique=True)
    stripe_customer_id: Optional[str] = Field(default=None)
    amount_cents: int = Field(default=0)
    currency: str = Field(default="eur")
    status: str = Field(default="succeeded")
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class StripeEvent(Base, table=True):
    """
    Table: stripe_events
    """

    __tablename__ = "stripe_events"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, description="Provider event id")
    type: str
    processed_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
