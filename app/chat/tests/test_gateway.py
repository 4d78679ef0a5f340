"""
Tests for the client transport layer.

- HttpPersistenceGateway against a local aiohttp server
- GatewayResponse envelope parsing
- ClientConfig from the environment
- Client error hierarchy
"""

import environ
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from chat.client.config import ClientConfig
from chat.client.errors import ChannelError, GatewayError
from chat.client.gateway import GatewayResponse, HttpPersistenceGateway
from core.exceptions import ExternalServiceError


def make_app(received):
    """Minimal stand-in for the chat API recording what it was sent."""

    async def list_chats(request):
        received.append(("GET", request.path, request.headers.get("Authorization")))
        return web.json_response({"success": True, "data": [{"id": 1}]})

    async def create_chat(request):
        received.append(("POST", request.path, await request.json()))
        return web.json_response({"success": True, "data": {"id": 2}}, status=201)

    async def messages(request):
        received.append(("GET", request.path, None))
        return web.json_response({"success": True, "data": []})

    async def clear(request):
        received.append(("POST", request.path, None))
        return web.json_response({"success": True, "data": {"id": 1, "unread_messages": 0}})

    async def send(request):
        body = await request.json()
        received.append(("POST", request.path, body))
        if not body["text"] and not body["image"]:
            return web.json_response(
                {
                    "success": False,
                    "message": "Message must contain text or an image",
                    "error_code": "EMPTY_CONTENT",
                },
                status=400,
            )
        return web.json_response({"success": True, "data": {"id": 9, **body}}, status=201)

    async def broken(request):
        return web.Response(text="<html>oops</html>", status=500)

    app = web.Application()
    app.router.add_get("/api/v1/chat/chats/", list_chats)
    app.router.add_post("/api/v1/chat/chats/", create_chat)
    app.router.add_get("/api/v1/chat/chats/{chat_id}/messages/", messages)
    app.router.add_post("/api/v1/chat/chats/{chat_id}/clear-unread/", clear)
    app.router.add_post("/api/v1/chat/messages/", send)
    app.router.add_get("/broken/chats/", broken)
    return app


@pytest_asyncio.fixture
async def server():
    received = []
    test_server = TestServer(make_app(received))
    await test_server.start_server()
    test_server.received = received
    yield test_server
    await test_server.close()


def gateway_for(server, prefix="/api/v1/chat", token="t0ken"):
    config = ClientConfig(
        api_url=str(server.make_url(prefix)),
        ws_url="ws://unused/ws/chat/",
        token=token,
        timeout=5,
    )
    return HttpPersistenceGateway(config)


@pytest.mark.asyncio
class TestHttpPersistenceGateway:
    async def test_get_all_chats_sends_bearer_token(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.get_all_chats()

        assert response == GatewayResponse(success=True, data=[{"id": 1}])
        assert server.received == [("GET", "/api/v1/chat/chats/", "Bearer t0ken")]

    async def test_create_chat(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.create_chat(7)

        assert response.data == {"id": 2}
        assert server.received == [("POST", "/api/v1/chat/chats/", {"members": [7]})]

    async def test_get_messages(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.get_messages(3)

        assert response.success
        assert server.received[0][1] == "/api/v1/chat/chats/3/messages/"

    async def test_clear_chat_messages(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.clear_chat_messages(1)

        assert response.data["unread_messages"] == 0
        assert server.received[0][1] == "/api/v1/chat/chats/1/clear-unread/"

    async def test_send_message_posts_content_only(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.send_message(
                {"chat": 1, "sender": 10, "text": "hi", "image": None}
            )

        assert response.data["id"] == 9
        assert server.received[0][2] == {"chat": 1, "text": "hi", "image": ""}

    async def test_business_failure_returned_not_raised(self, server):
        async with gateway_for(server) as gateway:
            response = await gateway.send_message({"chat": 1, "text": "", "image": None})

        assert response.success is False
        assert response.message == "Message must contain text or an image"
        assert response.error_code == "EMPTY_CONTENT"

    async def test_non_json_response_raises(self, server):
        async with gateway_for(server, prefix="/broken") as gateway:
            with pytest.raises(GatewayError):
                await gateway.get_all_chats()

    async def test_unreachable_server_raises(self):
        config = ClientConfig(api_url="http://127.0.0.1:9/api/", ws_url="", timeout=2)

        async with HttpPersistenceGateway(config) as gateway:
            with pytest.raises(GatewayError) as exc_info:
                await gateway.get_all_chats()

        assert exc_info.value.error_code == "GATEWAY_ERROR"


class TestGatewayResponse:
    def test_from_success_payload(self):
        response = GatewayResponse.from_payload({"success": True, "data": {"id": 1}})

        assert response.success
        assert response.data == {"id": 1}

    def test_from_failure_payload(self):
        response = GatewayResponse.from_payload(
            {"success": False, "message": "nope", "error_code": "NOT_MEMBER"}
        )

        assert not response.success
        assert response.message == "nope"
        assert response.error_code == "NOT_MEMBER"

    def test_rejects_payload_without_envelope(self):
        with pytest.raises(GatewayError):
            GatewayResponse.from_payload({"id": 1})


class TestClientConfig:
    def test_defaults(self, monkeypatch):
        for name in ("CHAT_API_URL", "CHAT_WS_URL", "CHAT_TOKEN", "CHAT_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        config = ClientConfig.from_env()

        assert config.api_url == "http://localhost:8000/api/v1/chat/"
        assert config.ws_url == "ws://localhost:8000/ws/chat/"
        assert config.headers == {}

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CHAT_API_URL", "https://chat.example.com/api/v1/chat/")
        monkeypatch.setenv("CHAT_WS_URL", "wss://chat.example.com/ws/chat/")
        monkeypatch.setenv("CHAT_TOKEN", "abc")
        monkeypatch.setenv("CHAT_TIMEOUT", "2.5")

        config = ClientConfig.from_env(environ.Env())

        assert config.ws_url == "wss://chat.example.com/ws/chat/"
        assert config.timeout == 2.5
        assert config.headers == {"Authorization": "Bearer abc"}


class TestClientErrors:
    def test_errors_are_external_service_errors(self):
        assert isinstance(GatewayError("down"), ExternalServiceError)
        assert isinstance(ChannelError("down"), ExternalServiceError)

    def test_error_codes(self):
        assert GatewayError("down").error_code == "GATEWAY_ERROR"
        assert ChannelError("down").status_code == 502
