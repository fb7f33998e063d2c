from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Sender:
    user_id: str
    name: str
    username: str


@dataclass(frozen=True, slots=True)
class Message:
    chat_id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    body: str
    type: str
    is_read: bool
    is_delivered: bool
    is_edited: bool
    created_at: datetime
    updated_at: datetime
    sender: Sender | None = None
