"""
Realtime channel client.

A RealtimeChannel carries {"event", "data"} frames to and from the relay.
Handlers are coroutines registered per event name with on() and removed
with off(); the same handler object must be passed to both.

Classes:
    EventChannel: Handler registry and dispatch, no transport
    WebSocketChannel: EventChannel over an aiohttp websocket
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Protocol

import aiohttp

from chat.client.errors import ChannelError
from chat.constants import EVENTS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from chat.client.config import ClientConfig

    Handler = Callable[[dict], Awaitable[None]]

logger = logging.getLogger(__name__)


class RealtimeChannel(Protocol):
    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str, handler: Handler) -> None: ...

    async def emit(self, event: str, data: dict) -> None: ...


class EventChannel:
    """Handler registry shared by every channel implementation."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def emit(self, event: str, data: dict) -> None:
        raise NotImplementedError

    async def dispatch(self, event: str, data: dict) -> None:
        """
        Run every handler registered for the event, in registration order.

        A failing handler is logged and does not stop the others.
        """
        # Handlers may unsubscribe (or subscribe) while we iterate
        for handler in list(self._handlers.get(event, [])):
            try:
                await handler(data)
            except Exception:
                logger.exception(f"Handler for {event!r} failed")


class WebSocketChannel(EventChannel):
    """
    EventChannel connected to the relay over a websocket.

    Usage:
        channel = WebSocketChannel(config)
        await channel.connect()
        channel.on("receive-message", handler)
        await channel.emit("typing", {...})
        ...
        await channel.close()
    """

    def __init__(self, config: ClientConfig, session: aiohttp.ClientSession | None = None):
        super().__init__()
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        if self.connected:
            return
        if self._session is None:
            self._session = aiohttp.ClientSession()

        params = {"token": self.config.token} if self.config.token else None
        try:
            self._ws = await self._session.ws_connect(self.config.ws_url, params=params)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChannelError(f"Could not connect to the relay: {e}") from e

        self._reader = asyncio.create_task(self._read_loop())
        logger.info(f"Connected to relay at {self.config.ws_url}")

    async def emit(self, event: str, data: dict) -> None:
        if not self.connected:
            raise ChannelError("Not connected to the relay")
        try:
            await self._ws.send_json({"event": event, "data": data})
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise ChannelError(f"Could not send {event!r}: {e}") from e

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _read_loop(self) -> None:
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                await self._handle_text(msg.data)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning(f"Relay connection error: {self._ws.exception()}")
                break
        logger.info(f"Relay connection closed ({self._ws.close_code})")

    async def _handle_text(self, text: str) -> None:
        try:
            frame = json.loads(text)
        except ValueError:
            logger.warning("Dropped malformed frame from relay")
            return

        event = frame.get("event") if isinstance(frame, dict) else None
        data = frame.get("data") if isinstance(frame, dict) else None
        if not event or not isinstance(data, dict):
            logger.warning("Dropped frame without event/data")
            return

        if event == EVENTS.ERROR:
            logger.warning(f"Relay rejected a frame: {data.get('message')}")

        await self.dispatch(event, data)
