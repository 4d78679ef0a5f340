"""
Tests for the websocket realtime channel.

WebSocketChannel runs against a local aiohttp websocket server that records
what the client sends and pushes frames on demand:
- Connecting with the access token as query parameter
- Emitting frames, and refusing to emit while disconnected
- Dispatching relay frames; dropping malformed ones
- Error frames, failing handlers
- Closing the reader task and the owned session
"""

import asyncio
import json
import logging

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from chat.client.channel import WebSocketChannel
from chat.client.config import ClientConfig
from chat.client.errors import ChannelError
from chat.constants import EVENTS


class RelayStub:
    """Websocket endpoint standing in for the relay."""

    def __init__(self):
        self.tokens = []
        self.received = []
        self.sockets = []

    async def handle(self, request):
        ws = web.WebSocketResponse()
        self.tokens.append(request.query.get("token"))
        self.sockets.append(ws)
        await ws.prepare(request)

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self.received.append(json.loads(msg.data))
        return ws

    async def push(self, text):
        await self.sockets[-1].send_str(text)


@pytest_asyncio.fixture
async def relay():
    stub = RelayStub()
    app = web.Application()
    app.router.add_get("/ws/chat/", stub.handle)
    server = TestServer(app)
    await server.start_server()
    stub.url = str(server.make_url("/ws/chat/").with_scheme("ws"))
    yield stub
    await server.close()


@pytest_asyncio.fixture
async def channel(relay):
    ws_channel = WebSocketChannel(
        ClientConfig(api_url="http://unused/", ws_url=relay.url, token="t0ken")
    )
    await ws_channel.connect()
    yield ws_channel
    await ws_channel.close()


@pytest.fixture
def channel_logs(caplog, monkeypatch):
    """Capture chat.* records, which settings.LOGGING keeps off the root logger."""
    monkeypatch.setattr(logging.getLogger("chat"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="chat.client.channel")
    return caplog


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


def recorder():
    calls = []

    async def handler(data):
        calls.append(data)

    return handler, calls


@pytest.mark.asyncio
class TestConnect:
    async def test_sends_token_as_query_parameter(self, relay, channel):
        assert channel.connected
        assert relay.tokens == ["t0ken"]

    async def test_connect_twice_keeps_one_connection(self, relay, channel):
        await channel.connect()

        assert len(relay.sockets) == 1

    async def test_unreachable_relay_raises(self):
        ws_channel = WebSocketChannel(
            ClientConfig(api_url="http://unused/", ws_url="ws://127.0.0.1:9/ws/chat/")
        )

        with pytest.raises(ChannelError):
            await ws_channel.connect()

        await ws_channel.close()


@pytest.mark.asyncio
class TestEmit:
    async def test_sends_event_frame(self, relay, channel):
        await channel.emit(EVENTS.TYPING, {"chat": 1, "members": [10, 20], "sender": 10})

        await wait_for(lambda: relay.received)
        assert relay.received == [
            {"event": EVENTS.TYPING, "data": {"chat": 1, "members": [10, 20], "sender": 10}}
        ]

    async def test_raises_when_never_connected(self):
        ws_channel = WebSocketChannel(
            ClientConfig(api_url="http://unused/", ws_url="ws://unused/ws/chat/")
        )

        with pytest.raises(ChannelError):
            await ws_channel.emit(EVENTS.TYPING, {"chat": 1})

    async def test_raises_after_close(self, channel):
        await channel.close()

        with pytest.raises(ChannelError):
            await channel.emit(EVENTS.TYPING, {"chat": 1})


@pytest.mark.asyncio
class TestInboundFrames:
    async def test_dispatches_to_handlers(self, relay, channel):
        handler, calls = recorder()
        channel.on(EVENTS.RECEIVE_MESSAGE, handler)

        await relay.push(json.dumps({"event": EVENTS.RECEIVE_MESSAGE, "data": {"id": 1}}))

        await wait_for(lambda: calls)
        assert calls == [{"id": 1}]

    async def test_malformed_frames_dropped(self, relay, channel, channel_logs):
        handler, calls = recorder()
        no_data, no_data_calls = recorder()
        channel.on(EVENTS.RECEIVE_MESSAGE, handler)
        channel.on("no-data", no_data)

        await relay.push("{not json")
        await relay.push(json.dumps({"event": "no-data"}))
        await relay.push(json.dumps(["receive-message", {"id": 1}]))
        await relay.push(json.dumps({"event": EVENTS.RECEIVE_MESSAGE, "data": {"id": 2}}))

        await wait_for(lambda: calls)
        assert calls == [{"id": 2}]
        assert no_data_calls == []
        assert "Dropped malformed frame from relay" in channel_logs.text
        assert "Dropped frame without event/data" in channel_logs.text

    async def test_error_frame_logged_and_dispatched(self, relay, channel, channel_logs):
        handler, calls = recorder()
        channel.on(EVENTS.ERROR, handler)

        await relay.push(
            json.dumps({"event": EVENTS.ERROR, "data": {"message": "Message not found"}})
        )

        await wait_for(lambda: calls)
        assert calls == [{"message": "Message not found"}]
        assert "Relay rejected a frame: Message not found" in channel_logs.text

    async def test_failing_handler_does_not_stop_reader(self, relay, channel, channel_logs):
        async def broken(data):
            raise RuntimeError("boom")

        handler, calls = recorder()
        channel.on(EVENTS.STARTED_TYPING, broken)
        channel.on(EVENTS.STARTED_TYPING, handler)

        await relay.push(json.dumps({"event": EVENTS.STARTED_TYPING, "data": {"chat": 1}}))
        await relay.push(json.dumps({"event": EVENTS.STARTED_TYPING, "data": {"chat": 2}}))

        await wait_for(lambda: len(calls) == 2)
        assert calls == [{"chat": 1}, {"chat": 2}]
        assert "Handler for 'started-typing' failed" in channel_logs.text

    async def test_removed_handler_not_called(self, relay, channel):
        handler, calls = recorder()
        other, other_calls = recorder()
        channel.on(EVENTS.RECEIVE_MESSAGE, handler)
        channel.on(EVENTS.RECEIVE_MESSAGE, other)
        channel.off(EVENTS.RECEIVE_MESSAGE, handler)

        await relay.push(json.dumps({"event": EVENTS.RECEIVE_MESSAGE, "data": {"id": 1}}))

        await wait_for(lambda: other_calls)
        assert calls == []


@pytest.mark.asyncio
class TestClose:
    async def test_cancels_reader_and_closes_owned_session(self, channel):
        reader = channel._reader
        session = channel._session

        await channel.close()

        assert reader.done()
        assert session.closed
        assert not channel.connected
        assert channel._session is None

    async def test_leaves_borrowed_session_open(self, relay):
        async with aiohttp.ClientSession() as session:
            ws_channel = WebSocketChannel(
                ClientConfig(api_url="http://unused/", ws_url=relay.url), session=session
            )
            await ws_channel.connect()

            await ws_channel.close()

            assert not ws_channel.connected
            assert not session.closed

    async def test_reader_ends_when_relay_closes(self, relay, channel):
        await relay.sockets[-1].close()

        await wait_for(lambda: channel._reader.done())
        assert not channel.connected
