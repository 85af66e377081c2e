"""Per-connection messaging view: conversation list, selection and live messages."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.api.middleware.error_handler import APIError
from src.core.realtime import InsertSubscription, RealtimeGateway
from src.models.conversation import ConversationView
from src.models.message import MessageView
from src.schemas.conversation import ConversationResponse
from src.schemas.message import MessageResponse
from src.services.conversation_service import ConversationService, find_direct_conversation

logger = logging.getLogger(__name__)

EmitCallback = Callable[[str, Any], Awaitable[None]]


async def _discard(event: str, data: Any) -> None:
    return None


class MessagingSession:
    """State of one user's messaging view.

    Holds the loaded conversations, the selected conversation, its
    messages and the single live subscription feeding them. Selecting
    another conversation always closes the previous subscription before
    opening the next one, so at most one listener is active.

    Outgoing events are pushed through ``emit(event, payload)``:
    conversations, selected, messages, message, error and ack.
    """

    def __init__(
        self,
        user_id: str,
        university_id: str | None,
        service: ConversationService | None = None,
        gateway: RealtimeGateway | None = None,
        emit: EmitCallback | None = None,
        own_profile: dict[str, Any] | None = None,
    ) -> None:
        self.user_id = str(user_id)
        self.university_id = str(university_id) if university_id else None
        self.service = service or ConversationService()
        self.gateway = gateway or RealtimeGateway()
        self._emit = emit or _discard

        self.conversations: list[ConversationView] = []
        self.selected_id: str | None = None
        self.messages: list[MessageView] = []
        self._profiles: dict[str, dict[str, Any]] = {}
        if own_profile and own_profile.get("id"):
            self._profiles[str(own_profile["id"])] = own_profile
        self._subscription: InsertSubscription | None = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def subscription(self) -> InsertSubscription | None:
        """The live subscription of the selected conversation, if any."""
        return self._subscription

    async def load_conversations(self) -> list[ConversationView]:
        """(Re)load the conversation list and push it."""
        self.conversations = await self.service.list_conversations(self.user_id)
        await self._emit("conversations", [ConversationResponse.model_validate(c) for c in self.conversations])
        return self.conversations

    async def select(self, conversation_id: str) -> None:
        """Select a conversation: load its history and follow new messages."""
        conversation_id = str(conversation_id)
        async with self._lock:
            await self._close_subscription()
            if self._closed:
                return

            self.selected_id = conversation_id
            self.messages = []

            messages, profiles = await self.service.get_messages(conversation_id)
            self._profiles.update(profiles)
            self.messages = messages

            try:
                self._subscription = await self.gateway.subscribe_inserts(
                    "messages", "conversation_id", conversation_id, self.on_insert
                )
            except Exception as e:
                logger.warning("Failed to subscribe to conversation %s: %s", conversation_id, e)

        await self._emit("selected", self._find_conversation_response(conversation_id))
        await self._emit("messages", [MessageResponse.model_validate(m) for m in self.messages])

    async def start_conversation(self, target_user_id: str) -> ConversationView | None:
        """Open the one-to-one conversation with the target, creating it if needed.

        Creation failures are logged and leave the selection unchanged.
        """
        result = await self.service.start_direct_conversation(
            self.user_id,
            target_user_id,
            self.university_id,
            conversations=self.conversations,
        )
        if result is None:
            return None

        conversation, _created = result
        if find_direct_conversation(self.conversations, str(target_user_id)) is None:
            self.conversations.insert(0, conversation)
            await self._emit(
                "conversations", [ConversationResponse.model_validate(c) for c in self.conversations]
            )

        await self.select(str(conversation["id"]))
        return conversation

    async def send(self, content: str) -> bool:
        """Send a message to the selected conversation.

        Nothing is appended locally; the message shows up when the live
        subscription delivers it.

        Returns:
            bool: True if a message was stored.
        """
        if not self.selected_id:
            return False

        try:
            stored = await self.service.send_message(self.selected_id, self.user_id, content)
        except APIError as e:
            await self._emit("error", {"error": e.error_type, "message": e.message})
            return False

        if stored is None:
            return False

        self._touch_conversation(self.selected_id)
        await self._emit("ack", {"sent": True, "message_id": stored.get("id")})
        return True

    async def on_insert(self, record: dict[str, Any]) -> None:
        """Append a message delivered by the live subscription."""
        if str(record.get("conversation_id")) != self.selected_id:
            return
        if any(str(m.get("id")) == str(record.get("id")) for m in self.messages):
            return

        sender_id = str(record.get("sender_id"))
        sender = self._profiles.get(sender_id)
        if sender is None:
            sender = await self.service.get_profile_summary(sender_id)
            if sender is not None:
                self._profiles[sender_id] = sender

        if str(record.get("conversation_id")) != self.selected_id:
            return

        message: MessageView = {**record, "sender": sender}  # type: ignore[typeddict-item]
        self.messages.append(message)
        await self._emit("message", MessageResponse.model_validate(message))

    async def close(self) -> None:
        """Tear down the live subscription. Safe to call more than once."""
        self._closed = True
        async with self._lock:
            await self._close_subscription()

    async def _close_subscription(self) -> None:
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await subscription.close()

    def _find_conversation_response(self, conversation_id: str) -> ConversationResponse | dict[str, str]:
        for conversation in self.conversations:
            if str(conversation["id"]) == conversation_id:
                return ConversationResponse.model_validate(conversation)
        return {"id": conversation_id}

    def _touch_conversation(self, conversation_id: str) -> None:
        """Move the conversation to the top of the list after activity."""
        for index, conversation in enumerate(self.conversations):
            if str(conversation["id"]) == conversation_id:
                self.conversations.insert(0, self.conversations.pop(index))
                return
