from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class OnlineUser:
    user_id: str
    username: str
    name: str | None = None
    last_seen: datetime | None = None
