"""Human-readable chat text: relative times, previews, notification lines."""
from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Protocol, TypeVar

from collab_chat.application.ports.clock import Clock, LocalClock
from collab_chat.domain.value_objects.enums import ConnectionStatus, MessageType

Timestamp = str | datetime | int | float

_MENTION_RE = re.compile(r"@(\w+)")

_default_clock = LocalClock()


def _to_datetime(value: Timestamp) -> datetime:
    """Parse ISO strings, datetimes or epoch milliseconds; naive values are local."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        dt = datetime.fromisoformat(value)
    return dt.astimezone() if dt.tzinfo is None else dt


def format_chat_time(timestamp: Timestamp, clock: Clock | None = None) -> str:
    date = _to_datetime(timestamp)
    now = (clock or _default_clock).now()

    diff_minutes = math.floor((now - date).total_seconds() / 60)
    diff_hours = math.floor(diff_minutes / 60)
    diff_days = math.floor(diff_hours / 24)

    if diff_minutes < 1:
        return "Just now"
    if diff_minutes < 60:
        return f"{diff_minutes}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days} days ago"
    return date.astimezone().strftime("%x")


def format_message_time(timestamp: Timestamp) -> str:
    return _to_datetime(timestamp).astimezone().strftime("%I:%M %p")


def truncate_message(message: str, max_length: int = 50) -> str:
    if len(message) <= max_length:
        return message
    return message[:max_length] + "..."


def generate_conversation_key(user_id_1: str, user_id_2: str) -> str:
    """Order-independent key for a pair of users."""
    return "_".join(sorted([user_id_1, user_id_2]))


def extract_mentions(message: str) -> list[str]:
    return _MENTION_RE.findall(message)


def generate_notification_text(
    sender_name: str,
    message: str,
    message_type: str = MessageType.TEXT,
) -> str:
    if message_type == MessageType.IMAGE:
        return f"{sender_name} sent a photo"
    if message_type == MessageType.FILE:
        return f"{sender_name} sent a file"
    if message_type == MessageType.AUDIO:
        return f"{sender_name} sent an audio message"
    if message_type == MessageType.VIDEO:
        return f"{sender_name} sent a video"
    return f"{sender_name}: {truncate_message(message, 30)}"


class _Groupable(Protocol):
    @property
    def sender_id(self) -> str: ...

    @property
    def created_at(self) -> datetime: ...


M = TypeVar("M", bound=_Groupable)


def group_messages(messages: Sequence[M], max_gap_minutes: float = 5) -> list[list[M]]:
    """Split a chronologically sorted list into runs by the same sender.

    A new run starts when the sender changes or the gap to the previous
    message exceeds ``max_gap_minutes``. Unsorted input is not validated.
    """
    groups: list[list[M]] = []
    current: list[M] = []
    previous: M | None = None

    for message in messages:
        if previous is not None:
            gap = _to_datetime(message.created_at) - _to_datetime(previous.created_at)
            if (
                previous.sender_id != message.sender_id
                or gap.total_seconds() / 60 > max_gap_minutes
            ):
                groups.append(current)
                current = []
        current.append(message)
        previous = message

    if current:
        groups.append(current)
    return groups


_STATUS_TEXT: dict[ConnectionStatus, str] = {
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.CONNECTING: "Reconnecting...",
    ConnectionStatus.DISCONNECTED: "Offline",
    ConnectionStatus.GAVE_UP: "Connection lost",
}

_STATUS_COLOR: dict[ConnectionStatus, str] = {
    ConnectionStatus.CONNECTED: "green",
    ConnectionStatus.CONNECTING: "yellow",
    ConnectionStatus.DISCONNECTED: "red",
    ConnectionStatus.GAVE_UP: "red",
}


def connection_status_text(status: ConnectionStatus) -> str:
    return _STATUS_TEXT[status]


def connection_status_color(status: ConnectionStatus) -> str:
    return _STATUS_COLOR[status]
