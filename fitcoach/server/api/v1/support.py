"""
API endpoints for the support chat.

``router`` is the user side: their conversations and messages. ``admin_router``
is the coaching team's inbox.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, status
from pydantic import BaseModel

from fitcoach.core.database.entities.support import (
    ConversationRead,
    ConversationStatus,
    ConversationStatusUpdate,
    SupportMessageCreate,
    SupportMessageRead,
)
from fitcoach.server.services.deps import AdminUserDep, CurrentUserDep, SessionDep
from fitcoach.server.services.support import SupportService

router = APIRouter(tags=["support"])
admin_router = APIRouter(tags=["admin-support"])


class AdminReply(BaseModel):
    message: str


class MarkReadResponse(BaseModel):
    marked: int


@router.get(
    "/conversations",
    response_model=list[ConversationRead],
    summary="List My Conversations",
    description="The caller's support conversations, most recent activity first.",
    response_description="A list of conversations.",
)
async def list_conversations(user: CurrentUserDep, session: SessionDep) -> list[ConversationRead]:
    conversations = await SupportService(session).list_conversations(user.id)
    return [ConversationRead.model_validate(c) for c in conversations]


@router.post(
    "/conversations",
    response_model=ConversationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open Conversation",
    description="Return the caller's active conversation, opening a new one if there is none.",
    response_description="The active conversation.",
)
async def open_conversation(user: CurrentUserDep, session: SessionDep) -> ConversationRead:
    return ConversationRead.model_validate(await SupportService(session).open_conversation(user.id))


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[SupportMessageRead],
    summary="List Messages",
    description="Messages of one conversation, oldest first. Replies from the team are marked as read.",
    response_description="A list of messages.",
    responses={404: {"description": "Conversation not found"}},
)
async def list_messages(conversation_id: int, user: CurrentUserDep, session: SessionDep) -> list[SupportMessageRead]:
    messages = await SupportService(session).list_messages(conversation_id, user.id)
    return [SupportMessageRead.model_validate(m) for m in messages]


@router.post(
    "/messages",
    response_model=SupportMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    description="Send a message. Without a conversation id it goes to the caller's active conversation.",
    response_description="The stored message.",
    responses={422: {"description": "Empty message"}},
)
async def send_message(payload: SupportMessageCreate, user: CurrentUserDep, session: SessionDep) -> SupportMessageRead:
    return SupportMessageRead.model_validate(await SupportService(session).send_message(payload, user.id))


@admin_router.get(
    "/conversations",
    response_model=list[ConversationRead],
    summary="List All Conversations",
    description="Admin only. Every conversation with the user's email and the count of unread user messages.",
    response_description="A list of conversations.",
)
async def admin_list_conversations(
    admin: AdminUserDep, session: SessionDep, status: Optional[ConversationStatus] = None
) -> list[ConversationRead]:
    return await SupportService(session).admin_list(status)


@admin_router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[SupportMessageRead],
    summary="Read Conversation",
    description="Admin only. Messages of a conversation; user messages are marked as read.",
    response_description="A list of messages.",
)
async def admin_list_messages(
    conversation_id: int, admin: AdminUserDep, session: SessionDep
) -> list[SupportMessageRead]:
    messages = await SupportService(session).list_messages(conversation_id, admin.id, is_admin=True)
    return [SupportMessageRead.model_validate(m) for m in messages]


@admin_router.post(
    "/conversations/{conversation_id}/reply",
    response_model=SupportMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Reply",
    description="Admin only. Reply in a conversation.",
    response_description="The stored reply.",
)
async def admin_reply(
    conversation_id: int, payload: AdminReply, admin: AdminUserDep, session: SessionDep
) -> SupportMessageRead:
    reply = await SupportService(session).reply(conversation_id, payload.message, admin.id)
    return SupportMessageRead.model_validate(reply)


@admin_router.patch(
    "/conversations/{conversation_id}",
    response_model=ConversationRead,
    summary="Set Conversation Status",
    description="Admin only. Mark a conversation active, closed or archived.",
    response_description="The updated conversation.",
)
async def admin_set_status(
    conversation_id: int, payload: ConversationStatusUpdate, admin: AdminUserDep, session: SessionDep
) -> ConversationRead:
    conversation = await SupportService(session).set_status(conversation_id, payload.status)
    return ConversationRead.model_validate(conversation)


@admin_router.post(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark Conversation Read",
    description="Admin only. Mark every user message in a conversation as read.",
    response_description="How many messages were marked.",
)
async def admin_mark_read(conversation_id: int, admin: AdminUserDep, session: SessionDep) -> MarkReadResponse:
    return MarkReadResponse(marked=await SupportService(session).mark_read(conversation_id))
