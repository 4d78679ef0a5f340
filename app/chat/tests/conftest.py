"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for the two members of a chat and an outsider
- Chat and message fixtures
- API client helpers for authenticated requests
- In-memory gateway, channel and notifier doubles for client tests

Usage:
    def test_example(chat, alice_client):
        response = alice_client.get(f"/api/v1/chat/chats/{chat.id}/messages/")
        assert response.status_code == 200
"""

import itertools

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.client.channel import EventChannel
from chat.client.errors import ChannelError, GatewayError
from chat.client.gateway import GatewayResponse
from chat.client.store import ChatStore
from chat.tests.factories import ChatFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    """First member of the test chat."""
    return UserFactory(first_name="Alice")


@pytest.fixture
def bob(db):
    """Second member of the test chat."""
    return UserFactory(first_name="Bob")


@pytest.fixture
def outsider(db):
    """A user who is not a member of the test chat."""
    return UserFactory(first_name="Mallory")


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def chat(db, alice, bob):
    """Chat between alice and bob with no messages."""
    return ChatFactory(members=[alice, bob])


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


def access_token_for(user) -> str:
    """JWT access token as used by the websocket middleware."""
    return str(AccessToken.for_user(user))


# =============================================================================
# Client Doubles
# =============================================================================


class FakeGateway:
    """
    In-memory PersistenceGateway.

    Stores messages per chat and returns envelopes like the real API.
    Every call is appended to `calls` as (name, argument).
    """

    def __init__(self, chats=None, messages=None):
        self.chats = {c["id"]: dict(c) for c in (chats or [])}
        self.messages = {chat_id: list(ms) for chat_id, ms in (messages or {}).items()}
        self.calls = []
        self.fail_with = None
        self.reject_with = None
        self._ids = itertools.count(1000)

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with
        if self.reject_with is not None:
            return GatewayResponse(
                success=False, message=self.reject_with, error_code="REJECTED"
            )
        return None

    def call_count(self, name):
        return sum(1 for call_name, _ in self.calls if call_name == name)

    async def get_all_chats(self):
        self.calls.append(("get_all_chats", None))
        return self._check() or GatewayResponse(
            success=True, data=list(self.chats.values())
        )

    async def create_chat(self, member_id):
        self.calls.append(("create_chat", member_id))
        return self._check() or GatewayResponse(
            success=True, data=next(iter(self.chats.values()))
        )

    async def get_messages(self, chat_id):
        self.calls.append(("get_messages", chat_id))
        return self._check() or GatewayResponse(
            success=True, data=[dict(m) for m in self.messages.get(chat_id, [])]
        )

    async def send_message(self, message_data):
        self.calls.append(("send_message", message_data))
        rejected = self._check()
        if rejected:
            return rejected
        record = {
            "id": next(self._ids),
            "chat": message_data["chat"],
            "sender": message_data["sender"],
            "text": message_data.get("text") or "",
            "image": message_data.get("image") or "",
            "read": False,
            "created_at": "2026-01-01T12:00:00Z",
        }
        self.messages.setdefault(message_data["chat"], []).append(record)
        chat = self.chats.get(message_data["chat"])
        if chat is not None:
            chat["unread_messages"] = chat.get("unread_messages", 0) + 1
            chat["last_message"] = record
        return GatewayResponse(success=True, data=record)

    async def clear_chat_messages(self, chat_id):
        self.calls.append(("clear_chat_messages", chat_id))
        rejected = self._check()
        if rejected:
            return rejected
        chat = self.chats.setdefault(chat_id, {"id": chat_id, "members": []})
        chat["unread_messages"] = 0
        for message in self.messages.get(chat_id, []):
            message["read"] = True
        return GatewayResponse(success=True, data=dict(chat))


class FakeChannel(EventChannel):
    """EventChannel that records emitted frames instead of sending them."""

    def __init__(self):
        super().__init__()
        self.emitted = []
        self.fail_emit = False

    async def emit(self, event, data):
        if self.fail_emit:
            raise ChannelError("Not connected to the relay")
        self.emitted.append((event, data))

    def emitted_events(self, event):
        return [data for name, data in self.emitted if name == event]


class RecordingNotifier:
    def __init__(self):
        self.errors = []

    def error(self, message):
        self.errors.append(message)


def make_chat(chat_id, member_ids, last_sender=None, unread=0):
    """Chat dict shaped like ChatSerializer output."""
    last_message = None
    if last_sender is not None:
        last_message = {
            "id": 1,
            "chat": chat_id,
            "sender": last_sender,
            "text": "earlier",
            "image": "",
            "read": False,
            "created_at": "2026-01-01T11:00:00Z",
        }
    return {
        "id": chat_id,
        "members": [{"id": pk} for pk in member_ids],
        "last_message": last_message,
        "unread_messages": unread,
    }


@pytest.fixture
def fake_gateway():
    return FakeGateway(
        chats=[make_chat(1, [10, 20], unread=3), make_chat(2, [10, 30])],
        messages={
            1: [
                {
                    "id": 1,
                    "chat": 1,
                    "sender": 20,
                    "text": "hey",
                    "image": "",
                    "read": False,
                    "created_at": "2026-01-01T10:00:00Z",
                }
            ]
        },
    )


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store(fake_gateway):
    """Store of user 10, holding the gateway's chats."""
    return ChatStore(
        current_user_id=10, all_chats=[dict(c) for c in fake_gateway.chats.values()]
    )


@pytest.fixture
def gateway_error():
    return GatewayError("Could not reach the chat server")
