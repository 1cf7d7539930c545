"""
Personal training program entity models.

A client program is assigned to one user and is made of ordered days, each
holding ordered exercise items. Workout sessions belong to a program day and
collect set logs. Progression events record every weight change the
auto-progression applies.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..base import Base, UTCDateTime, utc_now


class ClientProgramBase(Base):
    """Base fields for an assigned program."""

    title: str
    goal: Optional[str] = Field(default=None)
    status: str = Field(default="active", description="'active' or 'completed'")
    is_active: bool = Field(default=True)
    start_date: Optional[date] = Field(default=None)
    duration_weeks: int = Field(default=4)
    training_days_per_week: Optional[int] = Field(default=None)
    auto_progression_enabled: bool = Field(default=True)


class ClientProgram(ClientProgramBase, table=True):
    """
    Table: client_programs
    """

    __tablename__ = "client_programs"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    assigned_to: str = Field(index=True, description="Trainee profile id")
    assigned_by: Optional[str] = Field(default=None, description="Admin profile id")
    completed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    def __repr__(self) -> str:
        return f"ClientProgram(id={self.id}, assigned_to={self.assigned_to}, status={self.status})"


class ClientProgramRead(ClientProgramBase):
    id: int
    assigned_to: str
    completed_at: Optional[datetime] = None
    created_at: datetime


class ClientDay(Base, table=True):
    """
    Table: client_days
    """

    __tablename__ = "client_days"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    client_program_id: int = Field(foreign_key="client_programs.id", index=True)
    title: str
    day_order: int = Field(default=1)
    weekday: Optional[int] = Field(default=None, description="1=Monday .. 5=Friday")
    note: Optional[str] = Field(default=None)


class ClientItemBase(Base):
    exercise_name: str
    order_in_day: int = Field(default=1)
    sets: int = Field(default=3)
    reps: str = Field(default="10", description="Prescription such as '10' or '8-12'")
    seconds: Optional[int] = Field(default=None)
    weight_kg: Optional[float] = Field(default=None)
    rest_seconds: Optional[int] = Field(default=None)
    rir_min: Optional[int] = Field(default=None)
    rir_max: Optional[int] = Field(default=None)
    coach_notes: Optional[str] = Field(default=None)
    video_url: Optional[str] = Field(default=None)


class ClientItem(ClientItemBase, table=True):
    """
    Table: client_items
    """

    __tablename__ = "client_items"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    client_day_id: int = Field(foreign_key="client_days.id", index=True)


class ClientItemRead(ClientItemBase):
    id: int
    client_day_id: int
    prescription: str = ""
    embed_url: Optional[str] = None


class ClientDayRead(SQLModel):
    id: int
    title: str
    day_order: int
    weekday: Optional[int] = None
    note: Optional[str] = None
    items: list[ClientItemRead] = Field(default_factory=list)


class ClientProgramDetail(ClientProgramRead):
    days: list[ClientDayRead] = Field(default_factory=list)


class ClientItemCreate(ClientItemBase):
    pass


class ClientDayCreate(SQLModel):
    title: str
    day_order: int = 1
    weekday: Optional[int] = None
    note: Optional[str] = None
    items: list[ClientItemCreate] = Field(default_factory=list)


class ClientProgramCreate(ClientProgramBase):
    """Admin payload assigning a full program to a user."""

    assigned_to: str
    days: list[ClientDayCreate] = Field(default_factory=list)


class WorkoutSession(Base, table=True):
    """
    Table: workout_sessions
    """

    __tablename__ = "workout_sessions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    client_program_id: int = Field(foreign_key="client_programs.id", index=True)
    client_day_id: int = Field(foreign_key="client_days.id")
    started_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)
    ended_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    duration_minutes: Optional[int] = Field(default=None)
    feedback: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    volume_multiplier: Optional[float] = Field(default=None)
    intensity_multiplier: Optional[float] = Field(default=None)


class WorkoutSessionRead(SQLModel):
    id: int
    user_id: str
    client_program_id: int
    client_day_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    volume_multiplier: Optional[float] = None
    intensity_multiplier: Optional[float] = None


class SetLogBase(Base):
    client_item_id: int = Field(foreign_key="client_items.id", index=True)
    set_number: int = Field(default=1, ge=1)
    weight_kg_done: Optional[float] = Field(default=None, ge=0)
    reps_done: Optional[int] = Field(default=None, ge=0)
    seconds_done: Optional[int] = Field(default=None, ge=0)
    rir_done: Optional[float] = Field(default=None, ge=0, le=10)
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = Field(default=None)


class SetLog(SetLogBase, table=True):
    """
    Table: set_logs
    """

    __tablename__ = "set_logs"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="workout_sessions.id", index=True)
    user_id: str = Field(index=True)
    program_id: Optional[int] = Field(default=None, index=True)
    marked_done_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)


class SetLogCreate(SetLogBase):
    pass


class SetLogRead(SetLogBase):
    id: int
    session_id: int
    marked_done_at: datetime


class ProgressionEventBase(Base):
    program_id: int = Field(foreign_key="client_programs.id", index=True)
    client_item_id: int = Field(foreign_key="client_items.id")
    action: str
    old_weight: Optional[float] = Field(default=None)
    new_weight: Optional[float] = Field(default=None)
    old_reps: Optional[str] = Field(default=None)
    new_reps: Optional[str] = Field(default=None)
    reason: str = Field(default="")
    source: str = Field(default="weekly_job", description="weekly_job or admin")


class ProgressionEvent(ProgressionEventBase, table=True):
    """
    Table: progression_events
    """

    __tablename__ = "progression_events"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class ProgressionEventRead(ProgressionEventBase):
    id: int
    created_at: datetime
