"""HTTP client for the CollabForge chat REST endpoints."""
from __future__ import annotations

import json
import logging
from typing import Any, Self

import httpx

from collab_chat.application.exceptions import ApiError, ValidationError
from collab_chat.application.ports.auth import AuthProvider
from collab_chat.config import settings
from collab_chat.domain.value_objects.enums import MessageType
from collab_chat.infrastructure.http.schemas import EditMessageRequest, MessagePage
from collab_chat.infrastructure.realtime.protocol import SendMessageRequest
from collab_chat.services.validation import MAX_MESSAGE_LENGTH, validate_message

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    raw = response.text
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return json.loads(raw) if raw else {}
        except ValueError:
            return {"message": "Invalid JSON response", "rawResponse": raw}
    return {"message": raw or "No response body", "rawResponse": raw}


class ChatApiClient:
    """REST chat client; use as ``async with ChatApiClient(auth) as api``."""

    def __init__(
        self,
        auth: AuthProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._auth = auth
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        auth = self._auth.get_auth_data()
        if auth is not None:
            headers["Authorization"] = f"Bearer {auth.token}"

        try:
            response = await self.client.request(
                method, endpoint, json=body, params=params, headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("Network or unexpected error for %s %s", method, endpoint, exc_info=True)
            raise ApiError(500, "Network error occurred") from exc

        data = _parse_body(response)
        if response.is_success:
            return data

        if response.status_code == 401 and "/login" not in endpoint:
            logger.warning("Unauthorized response from %s, clearing auth", endpoint)
            self._auth.clear()

        message = data.get("message") if isinstance(data, dict) else None
        raise ApiError(
            response.status_code,
            message or f"HTTP {response.status_code} error",
            data,
        )

    @staticmethod
    def _require_valid(message: str) -> None:
        if not validate_message(message):
            raise ValidationError(
                f"Message must be between 1 and {MAX_MESSAGE_LENGTH} characters",
            )

    # ==================== Messages ====================

    async def send_message(
        self,
        receiver_id: str,
        message: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> dict[str, Any]:
        self._require_valid(message)
        logger.debug("Chat API: sending message to %s", receiver_id)
        request = SendMessageRequest(
            receiver_id=receiver_id, message=message, message_type=message_type,
        )
        result: dict[str, Any] = await self._request("POST", "/chat/send", body=request.to_wire())
        return result

    async def get_conversation_messages(
        self,
        conversation_id: str,
        page: int = 1,
        limit: int = 50,
    ) -> MessagePage:
        data = await self._request(
            "GET",
            f"/chat/conversations/{conversation_id}/messages",
            params={"page": page, "limit": limit},
        )
        return MessagePage.model_validate(data)

    async def mark_messages_as_read(self, conversation_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._request(
            "PATCH", f"/chat/conversations/{conversation_id}/read",
        )
        return result

    async def delete_message(self, message_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._request("DELETE", f"/chat/messages/{message_id}")
        return result

    async def edit_message(self, message_id: str, message: str) -> dict[str, Any]:
        self._require_valid(message)
        result: dict[str, Any] = await self._request(
            "PUT",
            f"/chat/messages/{message_id}",
            body=EditMessageRequest(message=message).to_wire(),
        )
        return result

    # ==================== Conversations ====================

    async def get_user_conversations(self, page: int = 1, limit: int = 20) -> dict[str, Any]:
        result: dict[str, Any] = await self._request(
            "GET", "/chat/conversations", params={"page": page, "limit": limit},
        )
        return result
