"""
Service for the support chat between users and the coaching team.

A user talks in one active conversation at a time; sending a message without
a conversation id continues that conversation or opens a new one. Admins see
every conversation with the number of user messages they have not read yet.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database.entities.support import (
    ConversationRead,
    SupportConversation,
    SupportMessage,
    SupportMessageCreate,
)
from fitcoach.core.database.repositories import ProfileRepository, SupportRepository
from fitcoach.core.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


def _clean(message: str) -> str:
    text = (message or "").strip()
    if not text:
        raise ValidationFailedError("Message must not be empty", code="REQUIRED_FIELD_MISSING")
    return text


class SupportService:
    """Conversations and messages for users and admins."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.support = SupportRepository(session)
        self.profiles = ProfileRepository(session)

    # ------------------------------------------------------------------
    # User side
    # ------------------------------------------------------------------

    async def list_conversations(self, user_id: str) -> List[SupportConversation]:
        return await self.support.list_for_user(user_id)

    async def open_conversation(self, user_id: str) -> SupportConversation:
        """Return the user's active conversation, opening one if there is none."""
        conversation = await self.support.get_active_for_user(user_id)
        if conversation is None:
            conversation = await self.support.create(SupportConversation(user_id=user_id))
            logger.info(f"Support conversation {conversation.id} opened by {user_id}")
        return conversation

    async def _conversation(self, conversation_id: int, user_id: Optional[str] = None) -> SupportConversation:
        conversation = await self.support.get_by_id(conversation_id)
        if conversation is None or (user_id is not None and conversation.user_id != user_id):
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    async def list_messages(self, conversation_id: int, user_id: str, is_admin: bool = False) -> List[SupportMessage]:
        """Messages of a conversation, oldest first; the other side's messages are marked read."""
        conversation = await self._conversation(conversation_id, None if is_admin else user_id)
        await self.support.mark_read(conversation.id, from_admin=not is_admin)
        return await self.support.list_messages(conversation.id)

    async def send_message(self, payload: SupportMessageCreate, user_id: str) -> SupportMessage:
        """
        Post a user message.

        Raises:
            ValidationFailedError: The message is blank.
            NotFoundError: The conversation belongs to someone else.
        """
        text = _clean(payload.message)
        if payload.conversation_id is not None:
            conversation = await self._conversation(payload.conversation_id, user_id)
        else:
            conversation = await self.open_conversation(user_id)
        if conversation.status != "active":
            conversation.status = "active"
        return await self.support.add_message(
            conversation,
            SupportMessage(conversation_id=conversation.id, sender_id=user_id, message=text, is_admin=False),
        )

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------

    async def admin_list(self, status: Optional[str] = None) -> List[ConversationRead]:
        conversations = await self.support.list(filters={"status": status})
        unread = await self.support.unread_counts(from_admin=False)
        emails = {}
        for user_id in {c.user_id for c in conversations}:
            profile = await self.profiles.get_by_id(user_id)
            emails[user_id] = profile.email if profile else None
        return [
            ConversationRead.model_validate(
                c, update={"unread_count": unread.get(c.id, 0), "user_email": emails.get(c.user_id)}
            )
            for c in conversations
        ]

    async def reply(self, conversation_id: int, message: str, admin_id: str) -> SupportMessage:
        text = _clean(message)
        conversation = await self._conversation(conversation_id)
        reply = await self.support.add_message(
            conversation,
            SupportMessage(conversation_id=conversation.id, sender_id=admin_id, message=text, is_admin=True),
        )
        logger.info(f"Admin {admin_id} replied in conversation {conversation_id}")
        return reply

    async def set_status(self, conversation_id: int, status: str) -> SupportConversation:
        conversation = await self._conversation(conversation_id)
        conversation.status = status
        return await self.support.update(conversation)

    async def mark_read(self, conversation_id: int) -> int:
        """Mark the user's messages in a conversation as read by the team."""
        conversation = await self._conversation(conversation_id)
        return await self.support.mark_read(conversation.id, from_admin=False)
