"""Per-user chat preferences and message drafts kept in Redis."""
from __future__ import annotations

import logging

import pydantic
import redis.asyncio as aioredis

from collab_chat.application.dto.preferences import ChatPreferences
from collab_chat.config import settings

logger = logging.getLogger(__name__)


def _text(raw: str | bytes | None) -> str | None:
    if isinstance(raw, bytes):
        return raw.decode()
    return raw


class RedisChatStore:
    """Implements application.ports.store.ChatStore.

    Preferences live in a JSON string key, drafts in a hash keyed by
    conversation id.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        user_id: str,
        prefix: str | None = None,
    ) -> None:
        self._redis = redis
        prefix = prefix or settings.CHAT_STORE_PREFIX
        self._preferences_key = f"{prefix}:{user_id}:preferences"
        self._drafts_key = f"{prefix}:{user_id}:drafts"

    async def save_preferences(self, preferences: ChatPreferences) -> None:
        await self._redis.set(self._preferences_key, preferences.model_dump_json())

    async def load_preferences(self) -> ChatPreferences:
        raw = _text(await self._redis.get(self._preferences_key))
        if raw is None:
            return ChatPreferences()
        try:
            return ChatPreferences.model_validate_json(raw)
        except pydantic.ValidationError:
            logger.warning("Corrupt chat preferences at %s, using defaults", self._preferences_key)
            return ChatPreferences()

    async def save_draft(self, conversation_id: str, message: str) -> None:
        if not message.strip():
            return
        await self._redis.hset(self._drafts_key, conversation_id, message)

    async def load_draft(self, conversation_id: str) -> str:
        raw = _text(await self._redis.hget(self._drafts_key, conversation_id))
        return raw or ""

    async def clear_draft(self, conversation_id: str) -> None:
        await self._redis.hdel(self._drafts_key, conversation_id)
