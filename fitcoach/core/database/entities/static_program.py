"""
Self-guided (static) program entity models.

The static program is one shared 20-day cycle (four weeks of five workdays).
A user starts it on a Monday and completes at most one day per calendar day.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, UTCDateTime, utc_now


class StaticProgramDay(Base, table=True):
    """
    Table: program_days

    ``exercises`` holds the structured list. Rows imported from the flat
    spreadsheet format keep it in ``legacy`` (``exercise1``..``exercise5``).
    """

    __tablename__ = "program_days"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    day: int = Field(unique=True, index=True, description="1..20 within the cycle")
    title: Optional[str] = Field(default=None)
    hint: Optional[str] = Field(default=None)
    exercises: Optional[list[dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))
    legacy: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))


class StaticStart(Base, table=True):
    """
    Table: static_starts
    """

    __tablename__ = "static_starts"
    __table_args__ = ({"extend_existing": True},)

    user_id: str = Field(primary_key=True)
    start_monday: date
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class UserProgress(Base, table=True):
    """
    Table: user_progress
    """

    __tablename__ = "user_progress"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    programday_id: int = Field(foreign_key="program_days.id")
    day_key: str = Field(index=True, description="Local YYYY-MM-DD of the completion")
    done: bool = Field(default=True)
    total_sets: Optional[int] = Field(default=None)
    total_reps: Optional[int] = Field(default=None)
    completed_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
