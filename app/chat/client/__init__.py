"""
Asyncio client for the chat system.

Modules:
    config: ClientConfig (endpoints and token)
    gateway: HttpPersistenceGateway, the REST API over aiohttp
    channel: WebSocketChannel, the relay connection over aiohttp
    store: ChatStore, shared client state
    indicator: TypingIndicator and IntervalGate
    conversation: ConversationView, the open chat
    session: ChatClient, everything wired together
"""

from chat.client.channel import EventChannel, RealtimeChannel, WebSocketChannel
from chat.client.config import ClientConfig
from chat.client.conversation import ConversationContext, ConversationView
from chat.client.errors import ChannelError, GatewayError
from chat.client.gateway import GatewayResponse, HttpPersistenceGateway
from chat.client.notifier import LoggingNotifier, Notifier
from chat.client.session import ChatClient
from chat.client.store import ChatStore

__all__ = [
    "ChannelError",
    "ChatClient",
    "ChatStore",
    "ClientConfig",
    "ConversationContext",
    "ConversationView",
    "EventChannel",
    "GatewayError",
    "GatewayResponse",
    "HttpPersistenceGateway",
    "LoggingNotifier",
    "Notifier",
    "RealtimeChannel",
    "WebSocketChannel",
]
