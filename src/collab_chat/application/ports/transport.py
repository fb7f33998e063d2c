"""Subset of the Socket.IO client API the chat session relies on."""
from __future__ import annotations

from typing import Any, Callable, Protocol


class Transport(Protocol):
    connected: bool

    def on(self, event: str, handler: Callable[..., Any] | None = None) -> Any: ...

    async def connect(
        self,
        url: str,
        *,
        auth: dict[str, Any] | None = None,
        transports: list[str] | None = None,
        wait_timeout: int = 1,
    ) -> None: ...

    async def emit(self, event: str, data: Any = None) -> None: ...

    async def disconnect(self) -> None: ...
