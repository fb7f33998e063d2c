from __future__ import annotations

from typing import Protocol

from collab_chat.application.dto.auth import AuthData


class AuthProvider(Protocol):
    def get_auth_data(self) -> AuthData | None: ...

    def clear(self) -> None: ...
