"""
Chat system models.

This module defines the persisted data of one-to-one chats:

Models:
    Chat: A conversation between exactly two users with an aggregate
          unread counter
    Message: A single unit of conversation content (text and/or image)

Design Decisions:
    - Membership is a plain many-to-many; the two-member invariant is
      enforced by ChatService when a chat is created
    - unread_messages is one counter per chat, incremented for every
      persisted message and reset when a member views the chat
    - Messages are immutable once stored except for the read flag
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models

from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class Chat(BaseModel):
    """
    A one-to-one conversation.

    Fields:
        members: The two users taking part
        last_message: Most recent message (null for an empty chat)
        unread_messages: Messages not yet viewed by the recipient

    Relationships:
        messages: All Message records for this chat
    """

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="chats",
        help_text="The two users taking part in this chat",
    )

    last_message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message in this chat",
    )

    unread_messages = models.PositiveIntegerField(
        default=0,
        help_text="Number of messages not yet viewed by the recipient",
    )

    class Meta:
        db_table = "chat_chat"
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        return f"Chat({self.pk})"

    def has_member(self, user: User) -> bool:
        """Check whether the user takes part in this chat."""
        return self.members.filter(pk=user.pk).exists()

    def member_ids(self) -> list:
        """Return member primary keys in a stable order."""
        return list(self.members.order_by("pk").values_list("pk", flat=True))


class Message(BaseModel):
    """
    A message within a chat.

    A message carries text, an image, or both. The image is stored as an
    opaque string (a URL or a data URI).

    Fields:
        chat: Chat this message belongs to
        sender: User who sent the message
        text: Message text (may be empty when an image is attached)
        image: Image URL or data URI (may be empty)
        read: Whether the recipient has viewed the message
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Chat this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    text = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )

    image = models.TextField(
        blank=True,
        default="",
        help_text="Image URL or data URI",
    )

    read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has viewed this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a chat, oldest first
            models.Index(
                fields=["chat", "created_at", "id"],
                name="chat_msg_chat_created_idx",
            ),
            # Unread messages of a chat (clear-unread update)
            models.Index(
                fields=["chat", "read"],
                name="chat_msg_chat_read_idx",
            ),
        ]

    def __str__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        if self.image and not preview:
            preview = "[image]"
        return f"User {self.sender_id}: {preview}"
