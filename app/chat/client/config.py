"""
Client configuration.

The client takes its endpoints explicitly. ClientConfig.from_env reads them
with django-environ, the same way config.settings reads the server's:

    CHAT_API_URL   Base URL of the chat gateway (default http://localhost:8000/api/v1/chat/)
    CHAT_WS_URL    Relay websocket URL (default ws://localhost:8000/ws/chat/)
    CHAT_TOKEN     JWT access token
    CHAT_TIMEOUT   Gateway request timeout in seconds (default 10)
"""

from __future__ import annotations

from dataclasses import dataclass

import environ


@dataclass(frozen=True)
class ClientConfig:
    api_url: str
    ws_url: str
    token: str = ""
    timeout: float = 10.0

    @classmethod
    def from_env(cls, env: environ.Env | None = None) -> ClientConfig:
        env = env or environ.Env()
        return cls(
            api_url=env.str("CHAT_API_URL", default="http://localhost:8000/api/v1/chat/"),
            ws_url=env.str("CHAT_WS_URL", default="ws://localhost:8000/ws/chat/"),
            token=env.str("CHAT_TOKEN", default=""),
            timeout=env.float("CHAT_TIMEOUT", default=10.0),
        )

    @property
    def headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
