"""
URL configuration for chat API.

URL Structure:
    Chats:
        /chats/                       GET, POST
        /chats/{id}/messages/         GET
        /chats/{id}/clear-unread/     POST

    Messages:
        /messages/                    POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ChatViewSet, MessageViewSet

router = DefaultRouter()
router.register(r"chats", ChatViewSet, basename="chat")
router.register(r"messages", MessageViewSet, basename="message")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
]
