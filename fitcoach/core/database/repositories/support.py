"""
Support chat repositories.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.support import SupportConversation, SupportMessage
from .base import SQLModelRepository


class SupportRepository(SQLModelRepository[SupportConversation]):
    """Repository for support conversations and their messages."""

    order_by = "last_message_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SupportConversation)

    async def list_for_user(self, user_id: str) -> List[SupportConversation]:
        stmt = (
            select(SupportConversation)
            .where(SupportConversation.user_id == user_id)
            .order_by(SupportConversation.last_message_at.desc())
        )
        return await self.scalars(stmt)

    async def get_active_for_user(self, user_id: str) -> Optional[SupportConversation]:
        stmt = (
            select(SupportConversation)
            .where((SupportConversation.user_id == user_id) & (SupportConversation.status == "active"))
            .order_by(SupportConversation.last_message_at.desc())
        )
        return await self.first(stmt)

    async def list_messages(self, conversation_id: int) -> List[SupportMessage]:
        stmt = (
            select(SupportMessage)
            .where(SupportMessage.conversation_id == conversation_id)
            .order_by(SupportMessage.created_at, SupportMessage.id)
        )
        return await self.scalars(stmt)

    async def add_message(self, conversation: SupportConversation, message: SupportMessage) -> SupportMessage:
        """Store ``message`` and bump the conversation's ``last_message_at``."""
        now = utc_now()
        message.created_at = now
        conversation.last_message_at = now
        conversation.updated_at = now
        self.session.add(message)
        self.session.add(conversation)
        await self.session.commit()
        await self.session.refresh(message)
        return message

    async def unread_counts(self, *, from_admin: bool) -> Dict[int, int]:
        """Unread message counts per conversation for messages sent by one side."""
        stmt = (
            select(SupportMessage.conversation_id, func.count())
            .where((SupportMessage.is_admin == from_admin) & (SupportMessage.read_at.is_(None)))
            .group_by(SupportMessage.conversation_id)
        )
        result = await self.session.execute(stmt)
        return {conversation_id: int(count) for conversation_id, count in result.all()}

    async def mark_read(self, conversation_id: int, *, from_admin: bool) -> int:
        stmt = select(SupportMessage).where(
            (SupportMessage.conversation_id == conversation_id)
            & (SupportMessage.is_admin == from_admin)
            & (SupportMessage.read_at.is_(None))
        )
        messages = await self.scalars(stmt)
        now = utc_now()
        for message in messages:
            message.read_at = now
            self.session.add(message)
        await self.session.commit()
        return len(messages)

    async def count_by_status(self, status: str) -> int:
        stmt = select(func.count()).select_from(SupportConversation).where(SupportConversation.status == status)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
