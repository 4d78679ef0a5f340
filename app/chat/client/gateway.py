"""
Persistence gateway client.

Talks to the chat REST API over aiohttp. Every call returns the server's
envelope as a GatewayResponse:

    {"success": true, "data": ...}             -> GatewayResponse(success=True, data=...)
    {"success": false, "message": "...", ...}  -> GatewayResponse(success=False, message=...)

Transport failures (connection refused, timeout, a body that is not an
envelope) raise GatewayError.

Usage:
    async with HttpPersistenceGateway(ClientConfig.from_env()) as gateway:
        response = await gateway.get_messages(chat_id)
        if response.success:
            messages = response.data
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import aiohttp

from chat.client.errors import GatewayError

if TYPE_CHECKING:
    from typing import Any

    from chat.client.config import ClientConfig

logger = logging.getLogger(__name__)


@dataclass
class GatewayResponse:
    """Envelope returned by every gateway call."""

    success: bool
    data: Any = None
    message: str | None = None
    error_code: str | None = None

    @classmethod
    def from_payload(cls, payload) -> GatewayResponse:
        if not isinstance(payload, dict) or "success" not in payload:
            raise GatewayError("Unexpected response from the chat server")
        return cls(
            success=bool(payload["success"]),
            data=payload.get("data"),
            message=payload.get("message"),
            error_code=payload.get("error_code"),
        )


class PersistenceGateway(Protocol):
    async def get_all_chats(self) -> GatewayResponse: ...

    async def create_chat(self, member_id) -> GatewayResponse: ...

    async def get_messages(self, chat_id) -> GatewayResponse: ...

    async def send_message(self, message_data: dict) -> GatewayResponse: ...

    async def clear_chat_messages(self, chat_id) -> GatewayResponse: ...


class HttpPersistenceGateway:
    """
    PersistenceGateway backed by the chat REST API.

    The aiohttp session is created on first use unless one is passed in;
    a session passed in is left open by close().
    """

    def __init__(self, config: ClientConfig, session: aiohttp.ClientSession | None = None):
        self.config = config
        self.base_url = config.api_url.rstrip("/") + "/"
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpPersistenceGateway:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers=self.config.headers,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def get_all_chats(self) -> GatewayResponse:
        return await self._request("GET", "chats/")

    async def create_chat(self, member_id) -> GatewayResponse:
        return await self._request("POST", "chats/", json={"members": [member_id]})

    async def get_messages(self, chat_id) -> GatewayResponse:
        return await self._request("GET", f"chats/{chat_id}/messages/")

    async def send_message(self, message_data: dict) -> GatewayResponse:
        payload = {
            "chat": message_data["chat"],
            "text": message_data.get("text") or "",
            "image": message_data.get("image") or "",
        }
        return await self._request("POST", "messages/", json=payload)

    async def clear_chat_messages(self, chat_id) -> GatewayResponse:
        return await self._request("POST", f"chats/{chat_id}/clear-unread/")

    async def _request(self, method: str, path: str, json: dict | None = None) -> GatewayResponse:
        url = f"{self.base_url}{path}"
        try:
            async with self.session.request(method, url, json=json) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    raise GatewayError(
                        f"Chat server returned a non-JSON response ({response.status})"
                    ) from None
        except asyncio.TimeoutError as e:
            raise GatewayError(f"Request to {path} timed out") from e
        except aiohttp.ClientError as e:
            raise GatewayError(f"Could not reach the chat server: {e}") from e

        result = GatewayResponse.from_payload(payload)
        if not result.success:
            logger.info(f"{method} {path} rejected: {result.error_code} {result.message}")
        return result
