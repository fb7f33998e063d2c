from __future__ import annotations

from typing import Protocol

from collab_chat.application.dto.preferences import ChatPreferences


class ChatStore(Protocol):
    async def save_preferences(self, preferences: ChatPreferences) -> None: ...

    async def load_preferences(self) -> ChatPreferences: ...

    async def save_draft(self, conversation_id: str, message: str) -> None: ...

    async def load_draft(self, conversation_id: str) -> str: ...

    async def clear_draft(self, conversation_id: str) -> None: ...
