"""
Account entity models.

A profile mirrors one user of the hosted auth service (the profile id is the
auth user id). Entitlements grant access per product and are unique per
user and product.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..base import Base, UTCDateTime, utc_now


class ProfileBase(Base):
    """Base fields for a user profile."""

    email: Optional[str] = Field(default=None, index=True, description="Login email")
    role: str = Field(default="user", description="'user' or 'admin'")
    is_paid: bool = Field(default=False)
    trial_used: bool = Field(default=False, description="Whether the one-off trial was consumed")
    trial_ends_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    current_period_end: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)


class Profile(ProfileBase, table=True):
    """
    Table: profiles
    """

    __tablename__ = "profiles"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, description="Auth service user id")
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )

    def __repr__(self) -> str:
        return f"Profile(id={self.id}, email={self.email}, role={self.role})"


class ProfileRead(ProfileBase):
    id: str
    created_at: datetime


class EntitlementBase(Base):
    """Base fields for a product entitlement."""

    user_id: str = Field(index=True, description="Owner profile id")
    product: str = Field(description="'static' or 'pt'")
    status: str = Field(default="active", description="active, trialing, inactive, cancelled or past_due")
    paused: bool = Field(default=False)
    started_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    expires_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    trial_ends_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    source: Optional[str] = Field(default=None, description="stripe, trial, admin, ...")
    note: Optional[str] = Field(default=None)


class UserEntitlement(EntitlementBase, table=True):
    """
    Table: user_entitlements
    """

    __tablename__ = "user_entitlements"
    __table_args__ = (
        UniqueConstraint("user_id", "product", name="uq_user_entitlements_user_product"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )

    def __repr__(self) -> str:
        return f"UserEntitlement(user_id={self.user_id}, product={self.product}, status={self.status})"


class EntitlementRead(EntitlementBase):
    id: int
    updated_at: datetime


class EntitlementUpdate(SQLModel):
    """Admin adjustment of one product entitlement."""

    product: Literal["static", "pt"]
    status: Literal["active", "trialing", "inactive", "cancelled", "past_due"] = "active"
    paused: bool = False
    expires_at: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    note: Optional[str] = None


class ProfileWithEntitlements(ProfileRead):
    entitlements: list[EntitlementRead] = Field(default_factory=list)
