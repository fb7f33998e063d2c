"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt
import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

from collab_chat.domain.entities.message import Message, Sender
from collab_chat.domain.entities.online_user import OnlineUser
from collab_chat.domain.value_objects.enums import MessageType
from collab_chat.infrastructure.auth.token_provider import TokenAuthProvider
from collab_chat.infrastructure.realtime.session import ChatSession

T0 = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def make_token(user_id: str = "user-1", *, expires_in: int = 3600, **claims: Any) -> str:
    payload = {
        "userId": user_id,
        "username": "creator1",
        "role": "creator",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def make_message(
    *,
    sender_id: str = "A",
    receiver_id: str = "B",
    conversation_id: str = "conv-1",
    body: str = "hello",
    created_at: datetime = T0,
    message_type: MessageType = MessageType.TEXT,
) -> Message:
    return Message(
        chat_id=str(uuid.uuid4()),
        conversation_id=conversation_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        body=body,
        type=message_type.value,
        is_read=False,
        is_delivered=True,
        is_edited=False,
        created_at=created_at,
        updated_at=created_at,
        sender=Sender(user_id=sender_id, name=f"User {sender_id}", username=sender_id.lower()),
    )


def make_online_user(user_id: str = "u1", *, last_seen: datetime = T0) -> OnlineUser:
    return OnlineUser(user_id=user_id, username=f"{user_id}-name", name=None, last_seen=last_seen)


def message_wire(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "chatId": "chat-1",
        "conversationId": "conv-1",
        "senderId": "u2",
        "receiverId": "user-1",
        "message": "hi there",
        "messageType": "text",
        "isRead": False,
        "isDelivered": True,
        "isEdited": False,
        "createdAt": "2024-05-10T12:00:00Z",
        "updatedAt": "2024-05-10T12:00:00Z",
        "sender": {"userId": "u2", "name": "Brand Two", "username": "brand2"},
    }
    data.update(overrides)
    return data


@dataclass
class FixedClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@dataclass
class FakeTransport:
    """In-memory stand-in for socketio.AsyncClient."""

    connected: bool = False
    fail_connect: bool = False
    handlers: dict[str, list[Callable[..., Any]]] = field(default_factory=dict)
    emitted: list[tuple[str, Any]] = field(default_factory=list)
    connect_calls: list[dict[str, Any]] = field(default_factory=list)

    def on(self, event: str, handler: Callable[..., Any] | None = None) -> None:
        self.handlers.setdefault(event, []).append(handler)

    async def connect(
        self,
        url: str,
        *,
        auth: dict[str, Any] | None = None,
        transports: list[str] | None = None,
        wait_timeout: int = 1,
    ) -> None:
        self.connect_calls.append(
            {"url": url, "auth": auth, "transports": transports, "wait_timeout": wait_timeout}
        )
        if self.fail_connect:
            raise SocketConnectionError("Connection refused by the server")
        self.connected = True
        await self.trigger("connect")

    async def emit(self, event: str, data: Any = None) -> None:
        self.emitted.append((event, data))

    async def disconnect(self) -> None:
        if self.connected:
            self.connected = False
            await self.trigger("disconnect", "io client disconnect")

    async def trigger(self, event: str, *args: Any) -> None:
        for handler in self.handlers.get(event, []):
            await handler(*args)

    async def server_disconnect(self) -> None:
        self.connected = False
        await self.trigger("disconnect", "io server disconnect")

    def sent(self, event: str) -> list[Any]:
        return [data for name, data in self.emitted if name == event]


@dataclass
class RecordingSleep:
    """Records requested backoff delays without waiting for them."""

    delays: list[float] = field(default_factory=list)
    block: bool = False

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.block:
            await asyncio.Event().wait()
        await asyncio.sleep(0)


@dataclass
class FakeRedis:
    strings: dict[str, str] = field(default_factory=dict)
    hashes: dict[str, dict[str, str]] = field(default_factory=dict)

    async def get(self, key: str) -> str | None:
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> None:
        self.strings[key] = value

    async def hget(self, key: str, field_name: str) -> str | None:
        return self.hashes.get(key, {}).get(field_name)

    async def hset(self, key: str, field_name: str, value: str) -> None:
        self.hashes.setdefault(key, {})[field_name] = value

    async def hdel(self, key: str, *field_names: str) -> int:
        bucket = self.hashes.get(key, {})
        return sum(1 for f in field_names if bucket.pop(f, None) is not None)


async def settle(predicate: Callable[[], bool], rounds: int = 500) -> None:
    """Yield to the loop until ``predicate`` holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def token() -> str:
    return make_token()


@pytest.fixture
def auth(token) -> TokenAuthProvider:
    return TokenAuthProvider(token)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def session(auth, transport, sleep) -> ChatSession:
    return ChatSession(
        auth,
        transport,
        url="http://chat.test",
        transports=["websocket", "polling"],
        timeout=20,
        max_attempts=5,
        base_delay=1.0,
        typing_debounce=0.05,
        typing_ttl=0.05,
        sleep=sleep,
    )
