"""
ViewSets for the chat persistence gateway.

This module provides REST API endpoints for the chat system:
- ChatViewSet: Chat listing, creation, history and unread clearing
- MessageViewSet: Sending messages

URL Structure:
    /api/v1/chat/chats/                       GET, POST
    /api/v1/chat/chats/{id}/messages/         GET
    /api/v1/chat/chats/{id}/clear-unread/     POST
    /api/v1/chat/messages/                    POST

Every response is wrapped in the gateway envelope. Failed service results
are raised as core.exceptions errors and rendered by
core.exception_handlers.api_exception_handler:
    {"success": true, "data": ...}
    {"success": false, "message": "...", "error_code": "..."}

Design Decisions:
    - All operations use the service layer for business logic
    - Membership is enforced by IsChatMember on detail routes and by the
      service layer for message creation
    - Histories are returned whole, oldest first
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.models import Chat
from chat.permissions import IsChatMember
from chat.serializers import (
    ChatCreateSerializer,
    ChatSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)
from chat.services import ChatService, MessageService
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.services import ServiceResult

User = get_user_model()

# Service error codes that are not plain validation failures
FAILURE_ERRORS = {
    "CHAT_NOT_FOUND": NotFoundError,
    "NOT_MEMBER": PermissionDeniedError,
}


def raise_failure(result: ServiceResult):
    """
    Raise a failed ServiceResult as an application error.

    core.exception_handlers renders it in the gateway envelope.
    """
    error_class = FAILURE_ERRORS.get(result.error_code, ValidationError)
    raise error_class(result.error, error_code=result.error_code)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_chats",
        summary="List chats",
        description="Chats of the current user, most recent activity first.",
        responses={200: ChatSerializer(many=True)},
        tags=["Chat - Chats"],
    ),
    create=extend_schema(
        operation_id="create_chat",
        summary="Create chat",
        description=(
            "Open a chat with another user. Returns the existing chat "
            "(200) if the two users already share one, otherwise 201."
        ),
        request=ChatCreateSerializer,
        responses={
            200: ChatSerializer,
            201: ChatSerializer,
            400: OpenApiResponse(description="Invalid member list"),
        },
        tags=["Chat - Chats"],
    ),
)
class ChatViewSet(viewsets.GenericViewSet):
    """
    ViewSet for chat operations.

    list:
        Get all chats of the current user with members, last message and
        unread counter.

    create:
        Get or create the chat with another user.

    messages:
        Message history of a chat, oldest first.

    clear_unread:
        Reset the unread counter and mark every message read.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ChatSerializer

    def get_queryset(self):
        """List only the user's chats; detail routes check membership."""
        if not self.request.user.is_authenticated:
            return Chat.objects.none()
        if self.action == "list":
            return ChatService.list_for_user(self.request.user)
        return Chat.objects.all()

    def get_serializer_class(self):
        if self.action == "create":
            return ChatCreateSerializer
        return ChatSerializer

    def get_permissions(self):
        if self.action in ("messages", "clear_unread"):
            return [IsAuthenticated(), IsChatMember()]
        return [IsAuthenticated()]

    def list(self, request):
        """List the user's chats."""
        chats = self.get_queryset()
        data = ChatSerializer(chats, many=True, context={"request": request}).data
        return Response(ServiceResult.success(data).to_response())

    def create(self, request):
        """Get or create the chat with another user."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        (other_id,) = serializer.validated_data["members"]
        other = User.objects.get(pk=other_id)

        result = ChatService.get_or_create_chat(request.user, other)
        if not result.success:
            raise_failure(result)

        chat, created = result.data
        data = ChatSerializer(chat, context={"request": request}).data
        return Response(
            ServiceResult.success(data).to_response(),
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="list_chat_messages",
        summary="Get chat messages",
        responses={
            200: MessageSerializer(many=True),
            403: OpenApiResponse(description="Not a member of this chat"),
            404: OpenApiResponse(description="Chat not found"),
        },
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        """Message history of a chat, oldest first."""
        chat = self.get_object()
        messages = MessageService.get_messages(chat)
        data = MessageSerializer(messages, many=True).data
        return Response(ServiceResult.success(data).to_response())

    @extend_schema(
        operation_id="clear_chat_unread",
        summary="Clear unread messages",
        request=None,
        responses={
            200: ChatSerializer,
            403: OpenApiResponse(description="Not a member of this chat"),
            404: OpenApiResponse(description="Chat not found"),
        },
        tags=["Chat - Chats"],
    )
    @action(detail=True, methods=["post"], url_path="clear-unread")
    def clear_unread(self, request, pk=None):
        """Reset the unread counter of a chat."""
        chat = self.get_object()

        result = ChatService.clear_unread(chat, request.user)
        if not result.success:
            raise_failure(result)

        data = ChatSerializer(result.data, context={"request": request}).data
        return Response(ServiceResult.success(data).to_response())


@extend_schema_view(
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        description=(
            "Persist a message. The sender is the authenticated user. The "
            "chat's last message and unread counter are updated."
        ),
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Empty or oversized message"),
            403: OpenApiResponse(description="Not a member of this chat"),
            404: OpenApiResponse(description="Chat not found"),
        },
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(viewsets.ViewSet):
    """
    ViewSet for sending messages.

    create:
        Store a message in a chat the user is a member of.
    """

    permission_classes = [IsAuthenticated]

    def create(self, request):
        """Send a message."""
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        chat_result = ChatService.get_chat_for_member(data["chat"], request.user)
        if not chat_result.success:
            raise_failure(chat_result)

        result = MessageService.send_message(
            chat=chat_result.data,
            sender=request.user,
            text=data.get("text", ""),
            image=data.get("image") or "",
        )
        if not result.success:
            raise_failure(result)

        return Response(
            result.map(lambda message: MessageSerializer(message).data).to_response(),
            status=status.HTTP_201_CREATED,
        )
