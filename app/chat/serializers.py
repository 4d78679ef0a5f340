"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message serializers (read, create)
- Chat serializers (read, create)

Serializer Hierarchy:
    MessageSerializer: Message as stored and as relayed over the websocket
    MessageCreateSerializer: Send new message

    ChatSerializer: Chat with members, last message and unread counter
    ChatCreateSerializer: Open a chat with another user

Design Decisions:
    - Read and write serializers are separate for clarity
    - Message.sender and Message.chat are plain ids so a relayed message
      can be compared against the local user without lookups
    - The sender of a new message is always the requesting user
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.constants import CHAT_CONFIG, MESSAGE_CONFIG
from chat.models import Chat, Message

User = get_user_model()


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """Message record as returned by the gateway and fanned out by the relay."""

    chat = serializers.IntegerField(source="chat_id", read_only=True)
    sender = serializers.IntegerField(source="sender_id", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "chat",
            "sender",
            "text",
            "image",
            "read",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending messages.

    Either text or image must be present; the check itself lives in
    MessageService so the relay and the API reject empty messages alike.
    """

    chat = serializers.IntegerField(help_text="Chat the message belongs to")
    text = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        help_text="Message text (max 10,000 characters)",
    )
    image = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default="",
        trim_whitespace=False,
        help_text="Image URL or data URI (optional)",
    )


# =============================================================================
# Chat Serializers
# =============================================================================


class ChatSerializer(serializers.ModelSerializer):
    """
    Chat with its members and latest message.

    last_message is null for a chat nobody has written to yet.
    """

    members = UserSerializer(many=True, read_only=True)
    last_message = MessageSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Chat
        fields = [
            "id",
            "members",
            "last_message",
            "unread_messages",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ChatCreateSerializer(serializers.Serializer):
    """
    Serializer for opening a chat.

    members may name just the other user or both users; the requesting
    user is always added.
    """

    members = serializers.ListField(
        child=serializers.IntegerField(),
        min_length=1,
        max_length=CHAT_CONFIG.MEMBER_COUNT,
        help_text="User IDs of the chat members",
    )

    def validate_members(self, value: list[int]) -> list[int]:
        """Reduce the list to the one other member and check they exist."""
        request = self.context.get("request")
        others = set(value)
        if request is not None:
            others.discard(request.user.pk)

        if len(others) != 1:
            raise serializers.ValidationError(
                "A chat needs exactly one other member"
            )

        (other_id,) = others
        if not User.objects.filter(pk=other_id, is_active=True).exists():
            raise serializers.ValidationError(
                f"User not found or inactive: {other_id}"
            )

        return [other_id]
