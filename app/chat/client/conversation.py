"""
Conversation view.

ConversationView coordinates one open chat on the client:

    - loads the message history when a chat is opened
    - sends messages: persist through the gateway first, then announce the
      confirmed record on the realtime channel
    - merges its own and relayed messages into one list, without duplicates
    - tracks whether the other member is typing
    - clears the unread counter when the chat is viewed

Every handler it registers on the channel is bound to the ConversationContext
of the chat it was registered for. Opening another chat unregisters the
previous handlers first, so only one set is ever active.

Failures (GatewayError, ChannelError, gateway success=false) are handed to
the Notifier; nothing is retried or rolled back.

Usage:
    view = ConversationView(store, gateway, channel)
    await view.open(chat)
    await view.update_draft("hel")
    await view.send_message("hello")
    await view.close()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from core.exceptions import ExternalServiceError

from chat.client.indicator import IntervalGate, TypingIndicator
from chat.client.notifier import LoggingNotifier
from chat.client.store import member_ids
from chat.constants import EVENTS, TYPING_CONFIG

if TYPE_CHECKING:
    from collections.abc import Callable

    from chat.client.channel import RealtimeChannel
    from chat.client.gateway import GatewayResponse, PersistenceGateway
    from chat.client.notifier import Notifier
    from chat.client.store import ChatStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationContext:
    """The chat a set of handlers was registered for."""

    chat_id: int
    member_ids: tuple
    user_id: int

    @classmethod
    def for_chat(cls, chat: dict, user_id) -> ConversationContext:
        return cls(chat_id=chat["id"], member_ids=member_ids(chat), user_id=user_id)


class ConversationView:
    """
    Client-side coordinator for the open chat.

    Attributes:
        messages: Messages of the open chat, oldest first
        draft: Text being typed
        emoji_picker_open: Whether the emoji picker is shown
        context: ConversationContext of the open chat (None when closed)
        typing: TypingIndicator for the other member
    """

    def __init__(
        self,
        store: ChatStore,
        gateway: PersistenceGateway,
        channel: RealtimeChannel,
        notifier: Notifier | None = None,
        typing_expiry: float = TYPING_CONFIG.EXPIRY_SECONDS,
        typing_interval: float = TYPING_CONFIG.EMIT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.gateway = gateway
        self.channel = channel
        self.notifier = notifier or LoggingNotifier()

        self.messages: list[dict] = []
        self.draft = ""
        self.emoji_picker_open = False
        self.loading = False
        self.context: ConversationContext | None = None
        self.typing = TypingIndicator(expiry=typing_expiry)
        self.typing_gate = IntervalGate(interval=typing_interval, clock=clock)
        self._subscriptions: list[tuple[str, Callable]] = []

    @property
    def is_recipient_typing(self) -> bool:
        return self.typing.is_active

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self, chat: dict) -> None:
        """
        Switch the view to a chat.

        Unless the chat's last message was sent by the local user, the chat's
        unread counter is cleared once the history is loaded.
        """
        self._unsubscribe()
        self.typing.clear()
        self.typing_gate.reset()
        self.messages = []
        self.draft = ""
        self.emoji_picker_open = False

        self.store.select(chat)
        context = ConversationContext.for_chat(chat, self.store.current_user_id)
        self.context = context
        self._subscribe(context)

        await self.load_messages(context)
        if not self._is_current(context):
            return

        last_message = chat.get("last_message") or {}
        if last_message.get("sender") != context.user_id:
            await self.clear_unread(context)

    async def close(self) -> None:
        """Drop the handlers and typing timers. In-flight requests finish on their own."""
        self._unsubscribe()
        self.typing.clear()
        self.context = None
        self.store.select(None)

    def _subscribe(self, context: ConversationContext) -> None:
        self._subscriptions = [
            (EVENTS.RECEIVE_MESSAGE, partial(self.on_receive_message, context)),
            (EVENTS.UNREAD_CLEARED, partial(self.on_unread_cleared, context)),
            (EVENTS.STARTED_TYPING, partial(self.on_started_typing, context)),
        ]
        for event, handler in self._subscriptions:
            self.channel.on(event, handler)

    def _unsubscribe(self) -> None:
        for event, handler in self._subscriptions:
            self.channel.off(event, handler)
        self._subscriptions = []

    def _is_current(self, context: ConversationContext) -> bool:
        return self.context is context

    # -------------------------------------------------------------------------
    # Gateway-backed operations
    # -------------------------------------------------------------------------

    async def load_messages(self, context: ConversationContext) -> None:
        """Load the chat history, keeping messages relayed while loading."""
        self.loading = True
        try:
            response = await self.gateway.get_messages(context.chat_id)
        except ExternalServiceError as e:
            self._fail(e.message)
            return
        finally:
            self.loading = False

        if not self._is_current(context):
            return
        if not response.success:
            self._fail_response(response)
            return

        loaded = list(response.data or [])
        loaded_ids = {message["id"] for message in loaded}
        relayed = [m for m in self.messages if m.get("id") not in loaded_ids]
        self.messages = loaded + relayed

    async def send_message(self, text: str | None = None, image: str | None = None) -> dict | None:
        """
        Persist a message and announce it to the chat members.

        Args:
            text: Message text (defaults to the current draft)
            image: Image URL or data URI

        Returns:
            The gateway-confirmed message, or None if it was not stored
        """
        context = self.context
        if context is None:
            self._fail("No chat is open")
            return None

        message_data = {
            "chat": context.chat_id,
            "sender": context.user_id,
            "text": self.draft if text is None else text,
            "image": image,
        }

        try:
            response = await self.gateway.send_message(message_data)
            if not response.success:
                self._fail_response(response)
                return None

            confirmed = response.data
            if self._is_current(context):
                self._append(confirmed)
                self.draft = ""
                self.emoji_picker_open = False
            self.store.update_chat(context.chat_id, last_message=confirmed)
        except ExternalServiceError as e:
            self._fail(e.message)
            return None

        # Stored from here on; a failed announcement is only reported
        try:
            await self.channel.emit(
                EVENTS.SEND_MESSAGE,
                {**confirmed, "members": list(context.member_ids), "read": False},
            )
        except ExternalServiceError as e:
            self._fail(e.message)

        return confirmed

    async def clear_unread(self, context: ConversationContext | None = None) -> None:
        """Announce and persist that the chat has been viewed."""
        context = context or self.context
        if context is None:
            return

        try:
            await self.channel.emit(
                EVENTS.CLEAR_UNREAD,
                {"chat": context.chat_id, "members": list(context.member_ids)},
            )
            response = await self.gateway.clear_chat_messages(context.chat_id)
        except ExternalServiceError as e:
            self._fail(e.message)
            return

        if not response.success:
            self._fail_response(response)
            return

        self.store.replace_chat(response.data)
        if self._is_current(context):
            self._mark_all_read()

    async def update_draft(self, text: str) -> None:
        """Set the draft text, telling the other member we are typing."""
        self.draft = text
        context = self.context
        if context is None or not text or not self.typing_gate.ready():
            return

        try:
            await self.channel.emit(
                EVENTS.TYPING,
                {
                    "chat": context.chat_id,
                    "members": list(context.member_ids),
                    "sender": context.user_id,
                },
            )
        except ExternalServiceError as e:
            self._fail(e.message)

    def toggle_emoji_picker(self) -> None:
        self.emoji_picker_open = not self.emoji_picker_open

    # -------------------------------------------------------------------------
    # Channel handlers
    # -------------------------------------------------------------------------

    async def on_receive_message(self, context: ConversationContext, message: dict) -> None:
        if message.get("chat") != context.chat_id or not self._is_current(context):
            return

        self._append(message)
        if message.get("sender") != context.user_id:
            await self.clear_unread(context)

    async def on_unread_cleared(self, context: ConversationContext, data: dict) -> None:
        if data.get("chat") != context.chat_id or not self._is_current(context):
            return

        self.store.update_chat(context.chat_id, unread_messages=0)
        self._mark_all_read()

    async def on_started_typing(self, context: ConversationContext, data: dict) -> None:
        if data.get("chat") != context.chat_id or not self._is_current(context):
            return
        if data.get("sender") == context.user_id:
            return

        self.typing.touch(data.get("sender"))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _append(self, message: dict) -> None:
        # The relay echoes our own messages back
        if any(m.get("id") == message.get("id") for m in self.messages):
            return
        self.messages.append(message)

    def _mark_all_read(self) -> None:
        self.messages = [{**message, "read": True} for message in self.messages]

    def _fail_response(self, response: GatewayResponse) -> None:
        self._fail(response.message or "The chat server rejected the request")

    def _fail(self, message: str) -> None:
        logger.debug(f"Conversation error: {message}")
        self.notifier.error(message)
