"""
Typing indicator timing.

TypingIndicator tracks who is typing on the receiving side: every typing
event for a sender cancels that sender's pending expiry and schedules a new
one, so the indicator goes idle only once every sender has been quiet for
the full expiry window.

IntervalGate limits how often the sending side emits typing events.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from chat.constants import TYPING_CONFIG

if TYPE_CHECKING:
    from collections.abc import Callable


class TypingIndicator:
    """
    Per-sender expiring "is typing" flags.

    Args:
        expiry: Seconds a sender stays active after their last event
        on_change: Called with the new state when is_active flips
    """

    def __init__(
        self,
        expiry: float = TYPING_CONFIG.EXPIRY_SECONDS,
        on_change: Callable[[bool], None] | None = None,
    ):
        self.expiry = expiry
        self.on_change = on_change
        self._timers: dict[object, asyncio.TimerHandle] = {}

    @property
    def is_active(self) -> bool:
        return bool(self._timers)

    @property
    def senders(self) -> set:
        return set(self._timers)

    def touch(self, sender_id) -> None:
        """Mark the sender as typing and restart their expiry."""
        was_active = self.is_active
        previous = self._timers.pop(sender_id, None)
        if previous is not None:
            previous.cancel()

        loop = asyncio.get_running_loop()
        self._timers[sender_id] = loop.call_later(self.expiry, self._expire, sender_id)

        if not was_active:
            self._notify(True)

    def clear(self) -> None:
        """Drop every sender without waiting for expiry."""
        was_active = self.is_active
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        if was_active:
            self._notify(False)

    def _expire(self, sender_id) -> None:
        self._timers.pop(sender_id, None)
        if not self.is_active:
            self._notify(False)

    def _notify(self, active: bool) -> None:
        if self.on_change is not None:
            self.on_change(active)


class IntervalGate:
    """
    Lets an action through at most once per interval.

    Args:
        interval: Minimum seconds between two allowed actions
        clock: Monotonic time source
    """

    def __init__(
        self,
        interval: float = TYPING_CONFIG.EMIT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self.clock = clock
        self._last: float | None = None

    def ready(self) -> bool:
        """Return True (and start a new interval) if the action may run now."""
        now = self.clock()
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None
