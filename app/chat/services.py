"""
Chat system service layer.

This module provides the business logic behind the persistence gateway and
the realtime relay.

Services:
    ChatService: Chat lifecycle (get-or-create, listing, unread clearing)
    MessageService: Message operations (send, history)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Writes touching both a message and its chat run in one transaction

Usage:
    from chat.services import ChatService, MessageService

    # Open (or reuse) the chat between two users
    result = ChatService.get_or_create_chat(user, other_user)
    if result.success:
        chat, created = result.data

    # Send a message
    result = MessageService.send_message(chat=chat, sender=user, text="hi")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db.models import F, QuerySet
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import MESSAGE_CONFIG
from chat.models import Chat, Message

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class ChatService(BaseService):
    """
    Service for chat lifecycle operations.

    Methods:
        get_or_create_chat: Return the chat shared by two users, creating it once
        list_for_user: Chats of a user, most recent activity first
        get_chat_for_member: Fetch a chat the user takes part in
        clear_unread: Zero the unread counter and mark messages read
    """

    @classmethod
    def find_chat_between(cls, user: User, other: User) -> Chat | None:
        """Return the chat whose members are exactly these two users."""
        return (
            Chat.objects.filter(members=user)
            .filter(members=other)
            .order_by("created_at")
            .first()
        )

    @classmethod
    def get_or_create_chat(
        cls,
        user: User,
        other: User,
    ) -> ServiceResult[tuple[Chat, bool]]:
        """
        Create or retrieve the chat between two users.

        A pair of users shares at most one chat. If one already exists, it is
        returned instead of creating a duplicate.

        Args:
            user: The requesting user
            other: The other member

        Returns:
            ServiceResult with (chat, created)

        Error codes:
            SAME_USER: Cannot open a chat with yourself
            INACTIVE_USER: The other user cannot receive messages
        """
        if user.pk == other.pk:
            return ServiceResult.failure(
                "Cannot create a chat with yourself",
                error_code="SAME_USER",
            )

        if not other.is_active:
            return ServiceResult.failure(
                "This user cannot receive messages",
                error_code="INACTIVE_USER",
            )

        existing = cls.find_chat_between(user, other)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing chat {existing.pk} "
                f"between users {user.pk} and {other.pk}"
            )
            return ServiceResult.success((existing, False))

        with cls.atomic():
            chat = Chat.objects.create()
            chat.members.add(user, other)

        cls.get_logger().info(
            f"Created chat {chat.pk} between users {user.pk} and {other.pk}"
        )
        return ServiceResult.success((chat, True))

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[Chat]:
        """Chats the user takes part in, newest activity first."""
        return (
            Chat.objects.filter(members=user)
            .select_related("last_message")
            .prefetch_related("members")
            .distinct()
            .order_by("-updated_at", "-id")
        )

    @classmethod
    def get_chat_for_member(cls, chat_id, user: User) -> ServiceResult[Chat]:
        """
        Fetch a chat by id, requiring the user to be one of its members.

        Error codes:
            CHAT_NOT_FOUND: No such chat
            NOT_MEMBER: The user is not a member of the chat
        """
        try:
            chat = Chat.objects.get(pk=chat_id)
        except (Chat.DoesNotExist, ValueError, TypeError):
            return ServiceResult.failure(
                "Chat not found",
                error_code="CHAT_NOT_FOUND",
            )

        if not chat.has_member(user):
            return ServiceResult.failure(
                "You are not a member of this chat",
                error_code="NOT_MEMBER",
            )

        return ServiceResult.success(chat)

    @classmethod
    def clear_unread(cls, chat: Chat, user: User) -> ServiceResult[Chat]:
        """
        Reset the chat's unread counter and mark its messages read.

        Args:
            chat: Chat being viewed
            user: Member viewing the chat

        Returns:
            ServiceResult with the refreshed Chat

        Error codes:
            NOT_MEMBER: The user is not a member of the chat
        """
        if not chat.has_member(user):
            return ServiceResult.failure(
                "You are not a member of this chat",
                error_code="NOT_MEMBER",
            )

        with cls.atomic():
            marked = Message.objects.filter(chat=chat, read=False).update(
                read=True, updated_at=timezone.now()
            )
            Chat.objects.filter(pk=chat.pk).update(unread_messages=0)

        chat.refresh_from_db()

        cls.get_logger().debug(
            f"User {user.pk} cleared chat {chat.pk} ({marked} messages marked read)"
        )
        return ServiceResult.success(chat)


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Persist a message and update its chat
        get_messages: Messages of a chat, oldest first
    """

    @classmethod
    def send_message(
        cls,
        chat: Chat,
        sender: User,
        text: str = "",
        image: str = "",
    ) -> ServiceResult[Message]:
        """
        Persist a message to a chat.

        The chat's last_message is pointed at the new message and its unread
        counter is incremented in the same transaction.

        Args:
            chat: Target chat
            sender: User sending the message
            text: Message text
            image: Image URL or data URI

        Returns:
            ServiceResult with the new Message

        Error codes:
            NOT_MEMBER: User is not a member of the chat
            EMPTY_CONTENT: Neither text nor image given
            TEXT_TOO_LONG: Text exceeds the maximum length
            IMAGE_TOO_LARGE: Image payload exceeds the maximum length
        """
        if not chat.has_member(sender):
            return ServiceResult.failure(
                "You are not a member of this chat",
                error_code="NOT_MEMBER",
            )

        text = text or ""
        image = image or ""
        if not text.strip() and not image:
            return ServiceResult.failure(
                "Message must contain text or an image",
                error_code="EMPTY_CONTENT",
            )

        if len(text) > MESSAGE_CONFIG.MAX_TEXT_LENGTH:
            return ServiceResult.failure(
                f"Message text cannot exceed {MESSAGE_CONFIG.MAX_TEXT_LENGTH} characters",
                error_code="TEXT_TOO_LONG",
            )

        if len(image) > MESSAGE_CONFIG.MAX_IMAGE_LENGTH:
            return ServiceResult.failure(
                "Image is too large",
                error_code="IMAGE_TOO_LARGE",
            )

        with cls.atomic():
            message = Message.objects.create(
                chat=chat,
                sender=sender,
                text=text,
                image=image,
            )

            # F() keeps concurrent sends from losing increments
            Chat.objects.filter(pk=chat.pk).update(
                last_message=message,
                unread_messages=F("unread_messages") + 1,
                updated_at=timezone.now(),
            )

        cls.get_logger().debug(
            f"User {sender.pk} sent message {message.pk} to chat {chat.pk}"
        )
        return ServiceResult.success(message)

    @classmethod
    def get_messages(cls, chat: Chat) -> QuerySet[Message]:
        """Messages of a chat, oldest first."""
        return Message.objects.filter(chat=chat).order_by("created_at", "id")

