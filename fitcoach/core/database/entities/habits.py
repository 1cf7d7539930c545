"""
Habit entity models.

Users keep up to four active custom habits and log them per calendar day.
Archived habits stay in the table with ``is_active`` off so they can be
restored together with their history.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class CustomHabitBase(Base):
    title: str = Field(min_length=1, max_length=100)
    icon_name: str = Field(default="CheckCircle", max_length=50)


class CustomHabit(CustomHabitBase, table=True):
    """
    Table: custom_habits
    """

    __tablename__ = "custom_habits"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    is_active: bool = Field(default=True)
    sort_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )


class CustomHabitCreate(CustomHabitBase):
    pass


class CustomHabitRead(CustomHabitBase):
    id: int
    is_active: bool
    sort_order: int
    done: bool = Field(default=False, description="Logged for today")


class HabitLog(Base, table=True):
    """
    Table: habit_logs
    """

    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "habit_id", "logged_on", name="uq_habit_logs_user_habit_day"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    habit_id: int = Field(foreign_key="custom_habits.id", index=True)
    logged_on: date
