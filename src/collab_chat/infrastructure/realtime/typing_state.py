"""Ephemeral "is typing" state for remote users, per conversation."""
from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class TypingTracker:
    """Tracks remote typists; entries expire after ``ttl`` seconds of silence."""

    def __init__(self, ttl: float = 3.0) -> None:
        self._ttl = ttl
        self._typing: dict[str, dict[str, str]] = {}
        self._expiry: dict[tuple[str, str], asyncio.TimerHandle] = {}

    def mark_typing(self, conversation_id: str, user_id: str, username: str = "") -> None:
        self._typing.setdefault(conversation_id, {})[user_id] = username
        key = (conversation_id, user_id)
        handle = self._expiry.pop(key, None)
        if handle is not None:
            handle.cancel()
        loop = asyncio.get_running_loop()
        self._expiry[key] = loop.call_later(self._ttl, self._expire, conversation_id, user_id)

    def mark_stopped(self, conversation_id: str, user_id: str) -> None:
        handle = self._expiry.pop((conversation_id, user_id), None)
        if handle is not None:
            handle.cancel()
        typists = self._typing.get(conversation_id)
        if typists is None:
            return
        typists.pop(user_id, None)
        if not typists:
            del self._typing[conversation_id]

    def is_typing(self, conversation_id: str, user_id: str) -> bool:
        return user_id in self._typing.get(conversation_id, {})

    def typing_users(self, conversation_id: str) -> dict[str, str]:
        """user_id → username of everyone currently typing in the conversation."""
        return dict(self._typing.get(conversation_id, {}))

    def conversations_for(self, user_id: str) -> list[str]:
        return [cid for cid, typists in self._typing.items() if user_id in typists]

    def clear(self) -> None:
        for handle in self._expiry.values():
            handle.cancel()
        self._expiry.clear()
        self._typing.clear()

    def _expire(self, conversation_id: str, user_id: str) -> None:
        self._expiry.pop((conversation_id, user_id), None)
        logger.debug("Typing indicator expired: %s in %s", user_id, conversation_id)
        self.mark_stopped(conversation_id, user_id)
