from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class AuthData:
    """Bearer token plus the unverified claims it carries."""

    token: str
    user_id: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)
