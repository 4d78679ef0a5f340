"""
WebSocket consumer for the chat relay.

The relay carries low-latency events between the members of a chat. It does
not persist anything: messages are stored through the REST gateway first and
the confirmed record is then announced here.

Consumers:
    ChatRelayConsumer: One connection per client session

Authentication:
    Users are authenticated via JWT token passed as query parameter.
    The JWTAuthMiddleware attaches the user to self.scope["user"].

Channel Groups:
    Each connected user joins "user_{user_id}". Events for a chat are sent
    to the groups of its members, resolved from the database.

Frames (both directions):
    {"event": "<name>", "data": {...}}

Events (from client):
    - send-message: Announce a persisted message
    - clear-unread-messages: Announce that a chat was viewed
    - typing: The sender is typing in a chat

Events (to client):
    - receive-message: New message in one of the user's chats
    - unread-messages-cleared: A chat's unread counter was reset
    - started-typing: The other member is typing
    - error: The frame was rejected
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from chat.constants import CLOSE_CODES, EVENTS
from chat.middleware import JWT_SUBPROTOCOL
from chat.models import Chat, Message
from chat.serializers import MessageSerializer

logger = logging.getLogger(__name__)


def user_group_name(user_id) -> str:
    """Channel layer group of a single user."""
    return f"user_{user_id}"


class ChatRelayConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer relaying chat events between members.

    Handles:
        - Connection authentication
        - Joining/leaving the per-user channel group
        - Fanning out messages, unread resets and typing signals

    Attributes:
        user: Authenticated user (after connect)
        group_name: Channel layer group of the user
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.group_name: str | None = None
        self.handlers = {
            EVENTS.SEND_MESSAGE: self.handle_send_message,
            EVENTS.CLEAR_UNREAD: self.handle_clear_unread,
            EVENTS.TYPING: self.handle_typing,
        }

    async def connect(self):
        """
        Handle WebSocket connection.

        Anonymous connections are closed with CLOSE_CODES.UNAUTHENTICATED.
        """
        user = self.scope.get("user")

        if not user or isinstance(user, AnonymousUser):
            logger.warning("Rejected unauthenticated relay connection")
            await self.close(code=CLOSE_CODES.UNAUTHENTICATED)
            return

        self.user = user
        self.group_name = user_group_name(user.pk)

        await self.channel_layer.group_add(self.group_name, self.channel_name)

        if JWT_SUBPROTOCOL in self.scope.get("subprotocols", []):
            await self.accept(subprotocol=JWT_SUBPROTOCOL)
        else:
            await self.accept()

        logger.info(f"User {user.pk} connected to relay")

    async def disconnect(self, close_code):
        """Leave the user group if one was joined."""
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"User {self.user.pk} disconnected from relay ({close_code})")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode a text frame, answering undecodable input with an error."""
        if text_data is None:
            await self.send_error("Binary frames are not supported")
            return

        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self.send_error("Malformed JSON")
            return

        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an incoming frame to its event handler.

        Expected frame format:
            {"event": "send-message", "data": {"id": 1, "chat": 3, ...}}
        """
        if not isinstance(content, dict) or not isinstance(content.get("data"), dict):
            await self.send_error("Frames must look like {event, data}")
            return

        event = content.get("event")
        handler = self.handlers.get(event)
        if handler is None:
            await self.send_error(f"Unknown event: {event}")
            return

        await handler(content["data"])

    # -------------------------------------------------------------------------
    # Inbound events
    # -------------------------------------------------------------------------

    async def handle_send_message(self, data: dict):
        """
        Announce a persisted message to every member of its chat.

        The relayed record is read back from the database, so only messages
        the gateway has stored reach the other member.
        """
        if data.get("sender") != self.user.pk:
            await self.send_error("Sender must be the connected user")
            return

        member_ids = await self.get_member_ids(data.get("chat"))
        if member_ids is None:
            await self.send_error("You are not a member of this chat")
            return

        record = await self.get_message_record(data.get("id"), data.get("chat"))
        if record is None:
            await self.send_error("Message not found")
            return

        await self.fan_out(member_ids, EVENTS.RECEIVE_MESSAGE, record)

    async def handle_clear_unread(self, data: dict):
        """Tell every member that a chat's unread counter was reset."""
        member_ids = await self.get_member_ids(data.get("chat"))
        if member_ids is None:
            await self.send_error("You are not a member of this chat")
            return

        await self.fan_out(
            member_ids, EVENTS.UNREAD_CLEARED, {"chat": int(data["chat"])}
        )

    async def handle_typing(self, data: dict):
        """Tell the other member that the user is typing."""
        member_ids = await self.get_member_ids(data.get("chat"))
        if member_ids is None:
            await self.send_error("You are not a member of this chat")
            return

        recipients = [pk for pk in member_ids if pk != self.user.pk]
        await self.fan_out(
            recipients,
            EVENTS.STARTED_TYPING,
            {"chat": int(data["chat"]), "sender": self.user.pk},
        )

    # -------------------------------------------------------------------------
    # Outbound events
    # -------------------------------------------------------------------------

    async def fan_out(self, user_ids, event: str, data: dict):
        """Send an event to the groups of the given users."""
        for user_id in user_ids:
            await self.channel_layer.group_send(
                user_group_name(user_id),
                {
                    "type": "relay.event",
                    "event": event,
                    "data": data,
                },
            )

    async def relay_event(self, event):
        """
        Handle relay.event messages from channel layer.

        Sends the event to the WebSocket client.
        """
        await self.send_json({"event": event["event"], "data": event["data"]})

    async def send_error(self, message: str):
        user_id = getattr(self.user, "pk", None)
        logger.debug(f"Rejected frame from user {user_id}: {message}")
        await self.send_json({"event": EVENTS.ERROR, "data": {"message": message}})

    # -------------------------------------------------------------------------
    # Database access
    # -------------------------------------------------------------------------

    @database_sync_to_async
    def get_member_ids(self, chat_id) -> list | None:
        """Member ids of the chat, or None unless the user is one of them."""
        try:
            chat = Chat.objects.get(pk=chat_id)
        except (Chat.DoesNotExist, ValueError, TypeError):
            return None

        member_ids = chat.member_ids()
        if self.user.pk not in member_ids:
            return None
        return member_ids

    @database_sync_to_async
    def get_message_record(self, message_id, chat_id) -> dict | None:
        """Serialized message sent by the user to the chat, if it exists."""
        try:
            message = Message.objects.get(
                pk=message_id, chat_id=chat_id, sender=self.user
            )
        except (Message.DoesNotExist, ValueError, TypeError):
            return None
        return dict(MessageSerializer(message).data)
