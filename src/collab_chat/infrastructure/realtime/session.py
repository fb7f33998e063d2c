"""Real-time chat session: connection lifecycle, reconnection, presence, typing."""
from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections import defaultdict
from types import TracebackType
from typing import Any, Awaitable, Callable, Self, TypeVar

import pydantic

from collab_chat.application.dto.auth import AuthData
from collab_chat.application.ports.auth import AuthProvider
from collab_chat.application.ports.transport import Transport
from collab_chat.config import settings
from collab_chat.domain.entities.message import Message
from collab_chat.domain.entities.online_user import OnlineUser
from collab_chat.domain.value_objects.enums import ConnectionStatus, MessageType
from collab_chat.infrastructure.realtime.presence import PresenceTracker
from collab_chat.infrastructure.realtime.protocol import (
    CLIENT_DISCONNECT_REASONS,
    ConversationRequest,
    InboundEvent,
    MessageNotification,
    MessagePayload,
    MessagesReadPayload,
    OnlineUserPayload,
    OutboundEvent,
    SendMessageRequest,
    UserStoppedTypingPayload,
    UserTypingPayload,
    WirePayload,
    online_users_adapter,
)
from collab_chat.infrastructure.realtime.transport import create_socketio_transport
from collab_chat.infrastructure.realtime.typing_state import TypingTracker
from collab_chat.infrastructure.timers import Debouncer

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=pydantic.BaseModel)

Listener = Callable[..., Any]
StatusListener = Callable[[ConnectionStatus], Any]
Unsubscribe = Callable[[], None]
SleepFn = Callable[[float], Awaitable[Any]]


class ChatSession:
    """One logical Socket.IO connection for an authenticated user.

    Transport handlers are bound once, here, for the session's lifetime.
    Server-side drops are retried with linear backoff (``attempt * base_delay``)
    up to ``max_attempts``; after that the status is ``GAVE_UP``.
    ``close()`` cancels any pending reconnect and typing timers.
    """

    def __init__(
        self,
        auth: AuthProvider,
        transport: Transport | None = None,
        *,
        url: str | None = None,
        transports: list[str] | None = None,
        timeout: int | None = None,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        typing_debounce: float | None = None,
        typing_ttl: float | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._auth = auth
        self._transport: Transport = transport or create_socketio_transport()
        self._url = url or settings.socket_url
        self._transports = transports or list(settings.SOCKET_TRANSPORTS)
        self._timeout = timeout if timeout is not None else settings.SOCKET_TIMEOUT_SECONDS
        self._max_attempts = (
            max_attempts if max_attempts is not None else settings.RECONNECT_MAX_ATTEMPTS
        )
        self._base_delay = (
            base_delay if base_delay is not None else settings.RECONNECT_BASE_DELAY_SECONDS
        )
        self._typing_debounce = (
            typing_debounce if typing_debounce is not None else settings.TYPING_DEBOUNCE_SECONDS
        )
        self._sleep = sleep

        self._status = ConnectionStatus.DISCONNECTED
        self._attempts = 0
        self._closed = False
        self._client_disconnect = False
        self._auth_data: AuthData | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._status_listeners: list[StatusListener] = []
        self._typing_debouncers: dict[str, Debouncer] = {}
        self._listener_tasks: set[asyncio.Future[Any]] = set()

        self.presence = PresenceTracker()
        self.typing = TypingTracker(
            typing_ttl if typing_ttl is not None else settings.TYPING_INDICATOR_TTL_SECONDS
        )

        self._bind_transport()

    # ------------------------------------------------------------------ state

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def user_id(self) -> str | None:
        return self._auth_data.user_id if self._auth_data else None

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        previous, self._status = self._status, status
        logger.debug("Chat session status %s -> %s", previous, status)
        for callback in list(self._status_listeners):
            try:
                result = callback(status)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._listener_tasks.add(task)
                    task.add_done_callback(self._on_listener_task_done)
            except Exception:
                logger.exception("Status listener failed")

    def _on_listener_task_done(self, task: asyncio.Future[Any]) -> None:
        self._listener_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Status listener failed", exc_info=exc)

    # -------------------------------------------------------------- lifecycle

    async def open(self) -> bool:
        """Connect with the current auth token. Returns False if not connected.

        A no-op while already connected or connecting.
        """
        if self._status in (ConnectionStatus.CONNECTED, ConnectionStatus.CONNECTING):
            logger.debug("Socket already %s, skipping open", self._status)
            return self.is_connected

        auth = self._auth.get_auth_data()
        if auth is None or not auth.token:
            logger.warning("No auth token found, cannot connect to socket")
            return False

        self._auth_data = auth
        self._closed = False
        self._client_disconnect = False
        self._attempts = 0
        logger.info("Initializing socket connection to: %s", self._url)
        self._set_status(ConnectionStatus.CONNECTING)
        try:
            await self._connect()
        except Exception:
            logger.error("Socket connection to %s failed", self._url, exc_info=True)
            self._set_status(ConnectionStatus.DISCONNECTED)
            self._schedule_reconnect()
            return False
        return True

    async def disconnect(self) -> None:
        """Client-initiated disconnect; never retried."""
        self._client_disconnect = True
        await self._cancel_reconnect()
        if self._transport.connected:
            await self._transport.disconnect()
        self._set_status(ConnectionStatus.DISCONNECTED)

    async def close(self) -> None:
        logger.info("Cleaning up socket connection")
        self._closed = True
        for debouncer in self._typing_debouncers.values():
            debouncer.cancel()
        self._typing_debouncers.clear()
        self.typing.clear()
        await self.disconnect()

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _connect(self) -> None:
        assert self._auth_data is not None
        await self._transport.connect(
            self._url,
            auth={"token": self._auth_data.token},
            transports=self._transports,
            wait_timeout=self._timeout,
        )

    def _schedule_reconnect(self) -> None:
        if self._closed or self._client_disconnect:
            return
        if self._attempts >= self._max_attempts:
            logger.error(
                "Giving up on socket reconnection after %d attempts", self._attempts,
            )
            self._set_status(ConnectionStatus.GAVE_UP)
            return
        self._attempts += 1
        delay = self._attempts * self._base_delay
        logger.info(
            "Attempting to reconnect in %.1fs... (%d/%d)",
            delay, self._attempts, self._max_attempts,
        )
        self._set_status(ConnectionStatus.CONNECTING)
        self._reconnect_task = asyncio.create_task(
            self._reconnect_after(delay), name=f"chat-reconnect-{self._attempts}",
        )

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        if self._closed or self._client_disconnect:
            return
        try:
            await self._connect()
        except Exception:
            logger.warning(
                "Reconnect attempt %d/%d failed",
                self._attempts, self._max_attempts, exc_info=True,
            )
            self._set_status(ConnectionStatus.DISCONNECTED)
            self._schedule_reconnect()

    async def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # --------------------------------------------------------------- outbound

    async def _emit(self, event: OutboundEvent, payload: WirePayload | None = None) -> bool:
        if not self.is_connected:
            logger.warning("Socket not connected, cannot emit %s", event.value)
            return False
        data = payload.to_wire() if payload is not None else None
        await self._transport.emit(event.value, data)
        return True

    async def send_message(
        self,
        receiver_id: str,
        message: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> bool:
        request = SendMessageRequest(
            receiver_id=receiver_id, message=message, message_type=message_type,
        )
        logger.debug("Sending message via socket to %s", receiver_id)
        return await self._emit(OutboundEvent.SEND_MESSAGE, request)

    async def join_conversation(self, conversation_id: str) -> bool:
        logger.debug("Joining conversation: %s", conversation_id)
        return await self._emit(
            OutboundEvent.JOIN_CONVERSATION, ConversationRequest(conversation_id=conversation_id),
        )

    async def leave_conversation(self, conversation_id: str) -> bool:
        logger.debug("Leaving conversation: %s", conversation_id)
        return await self._emit(
            OutboundEvent.LEAVE_CONVERSATION, ConversationRequest(conversation_id=conversation_id),
        )

    async def mark_messages_read(self, conversation_id: str) -> bool:
        return await self._emit(
            OutboundEvent.MARK_MESSAGES_READ, ConversationRequest(conversation_id=conversation_id),
        )

    async def start_typing(self, conversation_id: str) -> bool:
        return await self._emit(
            OutboundEvent.TYPING_START, ConversationRequest(conversation_id=conversation_id),
        )

    async def stop_typing(self, conversation_id: str) -> bool:
        debouncer = self._typing_debouncers.get(conversation_id)
        if debouncer is not None:
            debouncer.cancel()
        return await self._emit(
            OutboundEvent.TYPING_STOP, ConversationRequest(conversation_id=conversation_id),
        )

    async def notify_typing(self, conversation_id: str) -> None:
        """Keystroke hook: one typing_start, then typing_stop once input goes quiet."""
        if not self.is_connected:
            return
        debouncer = self._typing_debouncers.get(conversation_id)
        if debouncer is None:
            debouncer = Debouncer(
                functools.partial(self.stop_typing, conversation_id), self._typing_debounce,
            )
            self._typing_debouncers[conversation_id] = debouncer
        if not debouncer.pending:
            await self.start_typing(conversation_id)
        debouncer.reset()

    async def request_online_users(self) -> bool:
        return await self._emit(OutboundEvent.GET_ONLINE_USERS)

    # -------------------------------------------------------------- listeners

    def _add_listener(self, event: InboundEvent, callback: Listener) -> Unsubscribe:
        callbacks = self._listeners[event.value]
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def on_status_change(self, callback: StatusListener) -> Unsubscribe:
        self._status_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._status_listeners:
                self._status_listeners.remove(callback)

        return unsubscribe

    def on_new_message(self, callback: Callable[[Message], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.NEW_MESSAGE, callback)

    def on_message_notification(self, callback: Callable[[MessageNotification], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.MESSAGE_NOTIFICATION, callback)

    def on_user_typing(self, callback: Callable[[UserTypingPayload], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.USER_TYPING, callback)

    def on_user_stopped_typing(
        self, callback: Callable[[UserStoppedTypingPayload], Any],
    ) -> Unsubscribe:
        return self._add_listener(InboundEvent.USER_STOPPED_TYPING, callback)

    def on_online_users(self, callback: Callable[[list[OnlineUser]], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.ONLINE_USERS, callback)

    def on_user_online(self, callback: Callable[[OnlineUser], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.USER_ONLINE, callback)

    def on_user_offline(self, callback: Callable[[OnlineUser], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.USER_OFFLINE, callback)

    def on_messages_read(self, callback: Callable[[MessagesReadPayload], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.MESSAGES_READ, callback)

    def on_error(self, callback: Callable[[Any], Any]) -> Unsubscribe:
        return self._add_listener(InboundEvent.ERROR, callback)

    async def _dispatch(self, event: InboundEvent, *args: Any) -> None:
        for callback in list(self._listeners.get(event.value, ())):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Listener for %s failed", event.value)

    # --------------------------------------------------------------- inbound

    def _bind_transport(self) -> None:
        handlers: dict[InboundEvent, Callable[..., Awaitable[None]]] = {
            InboundEvent.CONNECT: self._on_connect,
            InboundEvent.CONNECT_ERROR: self._on_connect_error,
            InboundEvent.DISCONNECT: self._on_disconnect,
            InboundEvent.ONLINE_USERS: self._on_online_users,
            InboundEvent.USER_ONLINE: self._on_user_online,
            InboundEvent.USER_OFFLINE: self._on_user_offline,
            InboundEvent.NEW_MESSAGE: self._on_new_message,
            InboundEvent.MESSAGE_NOTIFICATION: self._on_message_notification,
            InboundEvent.USER_TYPING: self._on_user_typing,
            InboundEvent.USER_STOPPED_TYPING: self._on_user_stopped_typing,
            InboundEvent.MESSAGES_READ: self._on_messages_read,
            InboundEvent.CONVERSATION_JOINED: self._on_conversation_joined,
            InboundEvent.CONVERSATION_LEFT: self._on_conversation_left,
            InboundEvent.ERROR: self._on_error,
        }
        for event, handler in handlers.items():
            self._transport.on(event.value, handler)

    @staticmethod
    def _parse(model: type[P], event: InboundEvent, data: Any) -> P | None:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError:
            logger.warning("Dropping malformed %s payload: %r", event.value, data)
            return None

    async def _on_connect(self) -> None:
        logger.info("Socket connected successfully")
        self._attempts = 0
        self._set_status(ConnectionStatus.CONNECTED)
        await self.request_online_users()

    async def _on_connect_error(self, data: Any = None) -> None:
        logger.error("Socket connection error: %s", data)
        if self._status == ConnectionStatus.CONNECTED:
            self._set_status(ConnectionStatus.DISCONNECTED)

    async def _on_disconnect(self, reason: str | None = None) -> None:
        logger.info("Socket disconnected: %s", reason)
        self._set_status(ConnectionStatus.DISCONNECTED)
        if reason in CLIENT_DISCONNECT_REASONS:
            return
        self._schedule_reconnect()

    async def _on_online_users(self, data: Any = None) -> None:
        try:
            payloads = online_users_adapter.validate_python(data or [])
        except pydantic.ValidationError:
            logger.warning("Dropping malformed online_users payload: %r", data)
            return
        self.presence.replace(p.to_entity() for p in payloads)
        logger.debug("Online users updated: %d", len(self.presence))
        await self._dispatch(InboundEvent.ONLINE_USERS, self.presence.users)

    async def _on_user_online(self, data: Any = None) -> None:
        payload = self._parse(OnlineUserPayload, InboundEvent.USER_ONLINE, data)
        if payload is None:
            return
        user = payload.to_entity()
        self.presence.upsert(user)
        logger.debug("User came online: %s", user.user_id)
        await self._dispatch(InboundEvent.USER_ONLINE, user)

    async def _on_user_offline(self, data: Any = None) -> None:
        payload = self._parse(OnlineUserPayload, InboundEvent.USER_OFFLINE, data)
        if payload is None:
            return
        user = payload.to_entity()
        self.presence.remove(user.user_id)
        self._clear_typing_for(user.user_id)
        logger.debug("User went offline: %s", user.user_id)
        await self._dispatch(InboundEvent.USER_OFFLINE, user)

    def _clear_typing_for(self, user_id: str) -> None:
        for conversation_id in self.typing.conversations_for(user_id):
            self.typing.mark_stopped(conversation_id, user_id)

    async def _on_new_message(self, data: Any = None) -> None:
        payload = self._parse(MessagePayload, InboundEvent.NEW_MESSAGE, data)
        if payload is None:
            return
        message = payload.to_entity()
        self.typing.mark_stopped(message.conversation_id, message.sender_id)
        await self._dispatch(InboundEvent.NEW_MESSAGE, message)

    async def _on_message_notification(self, data: Any = None) -> None:
        payload = self._parse(MessageNotification, InboundEvent.MESSAGE_NOTIFICATION, data)
        if payload is not None:
            await self._dispatch(InboundEvent.MESSAGE_NOTIFICATION, payload)

    async def _on_user_typing(self, data: Any = None) -> None:
        payload = self._parse(UserTypingPayload, InboundEvent.USER_TYPING, data)
        if payload is None:
            return
        self.typing.mark_typing(payload.conversation_id, payload.user_id, payload.username)
        await self._dispatch(InboundEvent.USER_TYPING, payload)

    async def _on_user_stopped_typing(self, data: Any = None) -> None:
        payload = self._parse(UserStoppedTypingPayload, InboundEvent.USER_STOPPED_TYPING, data)
        if payload is None:
            return
        self.typing.mark_stopped(payload.conversation_id, payload.user_id)
        await self._dispatch(InboundEvent.USER_STOPPED_TYPING, payload)

    async def _on_messages_read(self, data: Any = None) -> None:
        payload = self._parse(MessagesReadPayload, InboundEvent.MESSAGES_READ, data)
        if payload is not None:
            await self._dispatch(InboundEvent.MESSAGES_READ, payload)

    async def _on_conversation_joined(self, data: Any = None) -> None:
        logger.info("Joined conversation: %s", (data or {}).get("conversationId"))

    async def _on_conversation_left(self, data: Any = None) -> None:
        logger.info("Left conversation: %s", (data or {}).get("conversationId"))

    async def _on_error(self, data: Any = None) -> None:
        logger.error("Socket error: %s", data)
        await self._dispatch(InboundEvent.ERROR, data)
