"""
Chat application configuration.

This app provides the chat system with:
- One-to-one chats with an aggregate unread counter
- Message persistence (text and/or image)
- A websocket relay fanning events out to chat members
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
