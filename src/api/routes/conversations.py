"""Conversation and message API routes, including the live messaging socket."""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from src.api.deps import (
    CurrentSession,
    CurrentUser,
    MessageRateLimit,
    authenticate_token,
    build_session_context,
    enforce_rate_limit,
)
from src.api.middleware.error_handler import APIError, AuthorizationError, BackendError, ValidationError
from src.core.config import get_settings
from src.schemas.conversation import (
    ConversationListResponse,
    ConversationResponse,
    DirectConversationRequest,
    DirectConversationResponse,
)
from src.schemas.message import MessageCreate, MessageListResponse, MessageResponse, SendMessageResponse
from src.services.conversation_service import ConversationService
from src.services.messaging_session import MessagingSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


async def _check_participant(service: ConversationService, conversation_id: UUID, user_id: UUID) -> None:
    if not await service.is_participant(conversation_id, user_id):
        raise AuthorizationError("You are not a participant of this conversation")


@router.get(
    "",
    response_model=ConversationListResponse,
    summary="List conversations",
    description="All conversations of the current user, most recently active first.",
)
async def list_conversations(user: CurrentUser) -> ConversationListResponse:
    service = ConversationService()
    conversations = await service.list_conversations(user.user_id)
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations]
    )


@router.post(
    "/direct",
    response_model=DirectConversationResponse,
    summary="Start a direct conversation",
    description="Return the existing one-to-one conversation with the user, or create it.",
)
async def start_direct_conversation(
    data: DirectConversationRequest,
    session: CurrentSession,
) -> DirectConversationResponse:
    """Find or create the one-to-one conversation with another user.

    Raises:
        BackendError: If the conversation could not be created.
    """
    service = ConversationService()
    result = await service.start_direct_conversation(
        session.user_id,
        data.user_id,
        session.university_id,
    )
    if result is None:
        raise BackendError("Could not start the conversation")

    conversation, created = result
    return DirectConversationResponse(
        conversation=ConversationResponse.model_validate(conversation),
        is_new=created,
    )


@router.get(
    "/{conversation_id}/messages",
    response_model=MessageListResponse,
    summary="List messages",
    description="Full message history of a conversation, oldest first.",
)
async def list_messages(conversation_id: UUID, user: CurrentUser) -> MessageListResponse:
    service = ConversationService()
    await _check_participant(service, conversation_id, user.user_id)

    messages, _profiles = await service.get_messages(conversation_id)
    return MessageListResponse(messages=[MessageResponse.model_validate(m) for m in messages])


@router.post(
    "/{conversation_id}/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
    description="Store a message; participants receive it through the live subscription.",
)
async def send_message(
    conversation_id: UUID,
    data: MessageCreate,
    user: CurrentUser,
    _rate_limit: MessageRateLimit,
) -> SendMessageResponse:
    """Send a message to a conversation.

    Raises:
        ValidationError: If the message is empty.
        AuthorizationError: If the user is not a participant.
        BackendError: If the backend rejects the message.
    """
    if not data.content.strip():
        raise ValidationError("Message cannot be empty")

    service = ConversationService()
    await _check_participant(service, conversation_id, user.user_id)

    stored = await service.send_message(conversation_id, user.user_id, data.content)
    return SendMessageResponse(sent=stored is not None, message_id=(stored or {}).get("id"))


@router.websocket("/ws")
async def messaging_socket(websocket: WebSocket, token: str = Query(..., description="Access token")) -> None:
    """Live messaging view.

    Client commands are JSON objects with an "action" key:
    refresh, select (conversation_id), start (user_id) and send (content).
    Server events are {"event": ..., "data": ...} objects.
    """
    try:
        user = authenticate_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    context = await build_session_context(user, token)

    async def emit(event: str, data: Any) -> None:
        await websocket.send_json({"event": event, "data": jsonable_encoder(data)})

    service = ConversationService()
    session = MessagingSession(
        user_id=str(context.user_id),
        university_id=context.university_id,
        service=service,
        emit=emit,
        own_profile=context.profile_summary,
    )
    settings = get_settings()

    try:
        await session.load_conversations()
        while True:
            command = await websocket.receive_json()
            action = command.get("action") if isinstance(command, dict) else None
            try:
                if action == "refresh":
                    await session.load_conversations()
                elif action == "select":
                    conversation_id = str(command.get("conversation_id") or "")
                    await _check_participant(service, UUID(conversation_id), context.user_id)
                    await session.select(conversation_id)
                elif action == "start":
                    target_id = UUID(str(command.get("user_id") or ""))
                    await session.start_conversation(str(target_id))
                elif action == "send":
                    await enforce_rate_limit(
                        f"message:{context.user_id}",
                        settings.rate_limit_message_requests,
                        "Rate limit exceeded. Please wait before sending more messages.",
                    )
                    await session.send(str(command.get("content") or ""))
                else:
                    await emit("error", {"error": "validation_error", "message": f"Unknown action: {action}"})
            except APIError as e:
                await emit("error", {"error": e.error_type, "message": e.message})
            except ValueError:
                await emit("error", {"error": "validation_error", "message": "Invalid identifier"})
    except WebSocketDisconnect:
        logger.debug("Messaging socket of %s disconnected", context.user_id)
    finally:
        await session.close()
