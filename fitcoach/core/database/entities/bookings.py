"""
Booking entity models.

A booking request is created together with a payment intent in ``pending``
state and becomes ``confirmed`` once the payment has succeeded and a slot was
picked.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..base import Base, UTCDateTime, utc_now


class BookingRequest(Base, table=True):
    """
    Table: booking_requests
    """

    __tablename__ = "booking_requests"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    service_type: str
    status: str = Field(default="pending", description="pending, confirmed or cancelled")
    preferred_date: Optional[datetime] = Field(default=None, index=True, sa_type=UTCDateTime)
    duration_minutes: int = Field(default=60)
    client_name: str
    client_email: str
    client_phone: Optional[str] = Field(default=None)
    pre_meeting_info: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    stripe_payment_intent_id: Optional[str] = Field(default=None, index=True)
    admin_notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )


class BookingRead(SQLModel):
    id: int
    user_id: str
    service_type: str
    status: str
    preferred_date: Optional[datetime] = None
    duration_minutes: int
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    created_at: datetime
