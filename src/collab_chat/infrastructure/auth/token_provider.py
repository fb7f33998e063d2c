from __future__ import annotations

import logging
import time
from typing import Any

import jwt

from collab_chat.application.dto.auth import AuthData

logger = logging.getLogger(__name__)


def read_claims(token: str) -> dict[str, Any]:
    """Decode JWT claims without verifying the signature; the server verifies."""
    return jwt.decode(token, options={"verify_signature": False})


class TokenAuthProvider:
    """Implements application.ports.auth.AuthProvider for an in-memory bearer token."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def set_token(self, token: str) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None

    def get_auth_data(self) -> AuthData | None:
        if not self._token:
            return None
        try:
            claims = read_claims(self._token)
        except jwt.PyJWTError:
            logger.debug("Token claims unreadable, user id unknown")
            claims = {}
        user_id = claims.get("userId") or claims.get("sub")
        return AuthData(
            token=self._token,
            user_id=str(user_id) if user_id is not None else None,
            claims=claims,
        )

    def is_authenticated(self, now: float | None = None) -> bool:
        """True while a token is held and its ``exp`` claim has not passed.

        Expired or undecodable tokens are dropped.
        """
        if not self._token:
            return False
        try:
            claims = read_claims(self._token)
        except jwt.PyJWTError:
            logger.warning("Error checking token validity", exc_info=True)
            self.clear()
            return False

        exp = claims.get("exp")
        current = time.time() if now is None else now
        if exp is not None and exp < current:
            logger.info("Auth token expired")
            self.clear()
            return False
        return True
