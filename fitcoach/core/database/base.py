"""
Base database models and utilities.

This module provides the foundational database components shared by every
entity of the fitcoach database layer using SQLModel.

Timestamps are timezone-aware UTC everywhere in Python. Every datetime column
uses ``UTCDateTime``, which accepts naive values as UTC on the way in and
always hands back aware UTC values, whichever backend stored them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


class UTCDateTime(TypeDecorator):
    """``TIMESTAMP WITH TIME ZONE`` that round-trips aware UTC datetimes.

    SQLite keeps no offset, so values are normalised to UTC before binding and
    tagged as UTC when read back.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
