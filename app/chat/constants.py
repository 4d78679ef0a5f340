"""
Constants and configuration for the chat module.

This module centralizes:
- Message limits
- Realtime event names shared by the relay and the conversation client
- Typing indicator timing

Import example:
    from chat.constants import EVENTS, MESSAGE_CONFIG, TYPING_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_TEXT_LENGTH: Final[int] = 10000  # Characters

    # Images travel as URLs or data URIs; data URIs of small pictures are
    # far longer than any URL.
    MAX_IMAGE_LENGTH: Final[int] = 5 * 1024 * 1024


# =============================================================================
# Chat Configuration
# =============================================================================


class CHAT_CONFIG:
    """Configuration for chats."""

    # Every chat is a one-to-one conversation
    MEMBER_COUNT: Final[int] = 2


# =============================================================================
# Realtime Events
# =============================================================================


class EVENTS:
    """
    Event names carried in the "event" field of websocket frames.

    Client -> relay:
        SEND_MESSAGE, CLEAR_UNREAD, TYPING

    Relay -> client:
        RECEIVE_MESSAGE, UNREAD_CLEARED, STARTED_TYPING, ERROR
    """

    SEND_MESSAGE: Final[str] = "send-message"
    RECEIVE_MESSAGE: Final[str] = "receive-message"
    CLEAR_UNREAD: Final[str] = "clear-unread-messages"
    UNREAD_CLEARED: Final[str] = "unread-messages-cleared"
    TYPING: Final[str] = "typing"
    STARTED_TYPING: Final[str] = "started-typing"
    ERROR: Final[str] = "error"


# =============================================================================
# Typing Indicator Configuration
# =============================================================================


class TYPING_CONFIG:
    """Timing of the typing indicator."""

    # How long a sender is shown as typing after their last event
    EXPIRY_SECONDS: Final[float] = 1.5

    # Minimum gap between two typing events emitted by one client
    EMIT_INTERVAL_SECONDS: Final[float] = 1.0


# =============================================================================
# WebSocket Close Codes
# =============================================================================


class CLOSE_CODES:
    """Application close codes used by the relay consumer."""

    UNAUTHENTICATED: Final[int] = 4001
