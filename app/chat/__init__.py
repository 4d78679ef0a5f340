"""
Chat app for real-time messaging.

This app handles:
- Chats between two users and their messages
- The REST persistence gateway (chats, history, send, clear unread)
- The websocket relay (new messages, unread resets, typing signals)
- An asyncio client coordinating one conversation (chat.client)

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the relay consumer.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ChatService, MessageService

    result = ChatService.get_or_create_chat(user, other_user)
    chat, created = result.data

    result = MessageService.send_message(chat=chat, sender=user, text="Hello!")
"""
