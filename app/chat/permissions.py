"""
Permission classes for chat API.

- IsChatMember: User is one of the two members of the chat

Design Decisions:
    - Membership is checked against Chat.members, never against ids sent
      by the client
    - Object-level only; list endpoints filter their queryset instead
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.models import Chat, Message

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsChatMember(permissions.BasePermission):
    """
    Allows access only to members of the chat.

    Works for Chat objects and for Message objects (through their chat).
    """

    message = "You are not a member of this chat."

    def has_object_permission(
        self, request: Request, view: APIView, obj: Chat | Message
    ) -> bool:
        if not request.user.is_authenticated:
            return False

        chat = obj.chat if isinstance(obj, Message) else obj
        return chat.has_member(request.user)
