from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class LocalClock:
    """Wall clock in the local timezone, used for relative chat times."""

    def now(self) -> datetime:
        return datetime.now().astimezone()
