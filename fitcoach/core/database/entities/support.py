"""
Support chat entity models.

A conversation belongs to one user. Messages are written either by that user
or by an admin (``is_admin``). ``read_at`` marks when the other side has seen
a message.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from sqlmodel import Field, SQLModel

from ..base import Base, UTCDateTime, utc_now

ConversationStatus = Literal["active", "closed", "archived"]


class SupportConversation(Base, table=True):
    """
    Table: support_conversations
    """

    __tablename__ = "support_conversations"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    status: str = Field(default="active")
    last_message_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )


class ConversationRead(SQLModel):
    id: int
    user_id: str
    status: str
    last_message_at: datetime
    created_at: datetime
    unread_count: int = 0
    user_email: Optional[str] = None


class ConversationStatusUpdate(SQLModel):
    status: ConversationStatus


class SupportMessage(Base, table=True):
    """
    Table: support_messages
    """

    __tablename__ = "support_messages"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="support_conversations.id", index=True)
    sender_id: str
    message: str
    is_admin: bool = Field(default=False)
    read_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)


class SupportMessageRead(SQLModel):
    id: int
    conversation_id: int
    sender_id: str
    message: str
    is_admin: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class SupportMessageCreate(SQLModel):
    message: str
    conversation_id: Optional[int] = None
