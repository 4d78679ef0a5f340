"""
Client-side chat state.

Chats are kept as the dicts the gateway returns (see chat.serializers.ChatSerializer).
"""

from __future__ import annotations

from dataclasses import dataclass, field


def member_ids(chat: dict) -> tuple:
    """Member ids of a chat whose members are user dicts or plain ids."""
    return tuple(
        member["id"] if isinstance(member, dict) else member
        for member in chat.get("members", [])
    )


@dataclass
class ChatStore:
    """
    State container shared by the client components.

    Attributes:
        current_user_id: The local user
        selected_chat: The chat shown in the conversation view
        all_chats: Every chat of the local user, as listed by the gateway
    """

    current_user_id: int | None = None
    selected_chat: dict | None = None
    all_chats: list[dict] = field(default_factory=list)

    def set_chats(self, chats: list[dict]) -> None:
        self.all_chats = list(chats)

    def select(self, chat: dict | None) -> None:
        self.selected_chat = chat

    def get_chat(self, chat_id) -> dict | None:
        for chat in self.all_chats:
            if chat["id"] == chat_id:
                return chat
        return None

    def replace_chat(self, chat: dict) -> None:
        """Swap in a fresh copy of a chat in place, adding it to the front if it is new."""
        if self.get_chat(chat["id"]) is None:
            self.all_chats = [chat, *self.all_chats]
        else:
            self.all_chats = [
                chat if c["id"] == chat["id"] else c for c in self.all_chats
            ]
        if self.selected_chat is not None and self.selected_chat["id"] == chat["id"]:
            self.selected_chat = chat

    def update_chat(self, chat_id, **changes) -> None:
        """Apply field changes to the cached copy of a chat."""
        self.all_chats = [
            {**chat, **changes} if chat["id"] == chat_id else chat
            for chat in self.all_chats
        ]
        if self.selected_chat is not None and self.selected_chat["id"] == chat_id:
            self.selected_chat = {**self.selected_chat, **changes}
