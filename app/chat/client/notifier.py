"""
User-facing notifications.

Every failure in the conversation client ends up here as a transient,
non-blocking message. Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes to the log; the default when no UI is attached."""

    def error(self, message: str) -> None:
        logger.warning(message)
