"""In-process registry of online peers."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from collab_chat.domain.entities.online_user import OnlineUser

logger = logging.getLogger(__name__)


class PresenceTracker:
    """Online users keyed by user_id, last write wins.

    Iteration order is insertion order; an upsert moves the user to the end.
    """

    def __init__(self) -> None:
        self._users: dict[str, OnlineUser] = {}

    def replace(self, users: Iterable[OnlineUser]) -> None:
        self._users = {}
        for user in users:
            self._users.pop(user.user_id, None)
            self._users[user.user_id] = user
        logger.debug("Presence snapshot: %d online", len(self._users))

    def upsert(self, user: OnlineUser) -> None:
        self._users.pop(user.user_id, None)
        self._users[user.user_id] = user

    def remove(self, user_id: str) -> OnlineUser | None:
        return self._users.pop(user_id, None)

    def clear(self) -> None:
        self._users.clear()

    def get(self, user_id: str) -> OnlineUser | None:
        return self._users.get(user_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._users

    @property
    def users(self) -> list[OnlineUser]:
        return list(self._users.values())

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def __len__(self) -> int:
        return len(self._users)
