"""Incoming-message notifications, one active per conversation."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from collab_chat.application.ports.store import ChatStore
from collab_chat.config import settings
from collab_chat.infrastructure.realtime.protocol import MessageNotification
from collab_chat.services.formatting import generate_notification_text

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Notification:
    tag: str
    text: str
    created_at: datetime
    closed: bool = False


NotificationSink = Callable[[Notification], Any]


def _log_sink(notification: Notification) -> None:
    logger.info("Notification [%s]: %s", notification.tag, notification.text)


class NotificationCenter:
    """Shows notifications tagged by conversation.

    A newer notification for the same conversation replaces the active one.
    Each notification closes itself after ``ttl`` seconds.
    """

    def __init__(
        self,
        sink: NotificationSink | None = None,
        *,
        ttl: float | None = None,
        enabled: bool = True,
    ) -> None:
        self._sink = sink or _log_sink
        self._ttl = settings.NOTIFICATION_TTL_SECONDS if ttl is None else ttl
        self.enabled = enabled
        self._active: dict[str, tuple[Notification, asyncio.TimerHandle]] = {}

    @property
    def active(self) -> list[Notification]:
        return [n for n, _ in self._active.values()]

    def show(self, notification: MessageNotification) -> Notification | None:
        if not self.enabled:
            return None

        tag = notification.conversation_id
        sender = notification.sender.name or notification.sender.username
        shown = Notification(
            tag=tag,
            text=generate_notification_text(
                sender, notification.message, notification.message_type,
            ),
            created_at=notification.created_at or datetime.now(timezone.utc),
        )

        self.dismiss(tag)
        handle = asyncio.get_running_loop().call_later(self._ttl, self.dismiss, tag)
        self._active[tag] = (shown, handle)

        try:
            self._sink(shown)
        except Exception:
            logger.exception("Notification sink failed for %s", tag)
        return shown

    def dismiss(self, tag: str) -> bool:
        entry = self._active.pop(tag, None)
        if entry is None:
            return False
        shown, handle = entry
        handle.cancel()
        shown.closed = True
        return True

    def clear(self) -> None:
        for tag in list(self._active):
            self.dismiss(tag)


async def load_notification_center(
    store: ChatStore,
    sink: NotificationSink | None = None,
) -> NotificationCenter:
    """Build a center honouring the stored notifications preference."""
    preferences = await store.load_preferences()
    return NotificationCenter(sink, enabled=preferences.notifications_enabled)
