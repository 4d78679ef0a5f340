"""
Client session wiring.

ChatClient owns the gateway, the relay connection, the store and the single
conversation view of one logged-in user.

Usage:
    async with ChatClient(ClientConfig.from_env(), user_id=7) as client:
        await client.load_chats()
        await client.select_chat(client.store.all_chats[0])
        await client.view.send_message("hello")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import ExternalServiceError

from chat.client.channel import WebSocketChannel
from chat.client.conversation import ConversationView
from chat.client.gateway import HttpPersistenceGateway
from chat.client.notifier import LoggingNotifier
from chat.client.store import ChatStore

if TYPE_CHECKING:
    from chat.client.config import ClientConfig
    from chat.client.notifier import Notifier

logger = logging.getLogger(__name__)


class ChatClient:
    def __init__(self, config: ClientConfig, user_id, notifier: Notifier | None = None):
        self.config = config
        self.notifier = notifier or LoggingNotifier()
        self.store = ChatStore(current_user_id=user_id)
        self.gateway = HttpPersistenceGateway(config)
        self.channel = WebSocketChannel(config)
        self.view = ConversationView(
            self.store, self.gateway, self.channel, notifier=self.notifier
        )

    async def __aenter__(self) -> ChatClient:
        await self.channel.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.view.close()
        await self.channel.close()
        await self.gateway.close()

    async def load_chats(self) -> list[dict]:
        """Refresh the store's chat list from the gateway."""
        try:
            response = await self.gateway.get_all_chats()
        except ExternalServiceError as e:
            self.notifier.error(e.message)
            return self.store.all_chats

        if response.success:
            self.store.set_chats(response.data or [])
        else:
            self.notifier.error(response.message or "Could not load chats")
        return self.store.all_chats

    async def start_chat(self, user_id) -> dict | None:
        """Open (or reuse) the chat with another user and select it."""
        try:
            response = await self.gateway.create_chat(user_id)
        except ExternalServiceError as e:
            self.notifier.error(e.message)
            return None

        if not response.success:
            self.notifier.error(response.message or "Could not start the chat")
            return None

        self.store.replace_chat(response.data)
        await self.select_chat(response.data)
        return response.data

    async def select_chat(self, chat: dict) -> None:
        await self.view.open(chat)
