from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base client error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class ApiError(AppError):
    """Non-successful REST response, or a request that never got one."""

    def __init__(self, status: int, message: str, details: Any = None) -> None:
        self.status = status
        self.details = details
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.detail
