"""Socket.IO event names and payload models."""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from collab_chat.domain.entities.message import Message, Sender
from collab_chat.domain.entities.online_user import OnlineUser
from collab_chat.domain.value_objects.enums import MessageType


class OutboundEvent(StrEnum):
    """Client → Server."""

    SEND_MESSAGE = "send_message"
    JOIN_CONVERSATION = "join_conversation"
    LEAVE_CONVERSATION = "leave_conversation"
    MARK_MESSAGES_READ = "mark_messages_read"
    TYPING_START = "typing_start"
    TYPING_STOP = "typing_stop"
    GET_ONLINE_USERS = "get_online_users"


class InboundEvent(StrEnum):
    """Server → Client."""

    CONNECT = "connect"
    CONNECT_ERROR = "connect_error"
    DISCONNECT = "disconnect"
    ONLINE_USERS = "online_users"
    USER_ONLINE = "user_online"
    USER_OFFLINE = "user_offline"
    NEW_MESSAGE = "new_message"
    MESSAGE_NOTIFICATION = "message_notification"
    USER_TYPING = "user_typing"
    USER_STOPPED_TYPING = "user_stopped_typing"
    MESSAGES_READ = "messages_read"
    CONVERSATION_JOINED = "conversation_joined"
    CONVERSATION_LEFT = "conversation_left"
    ERROR = "error"


# socket.io-client and python-socketio spell a client-side disconnect differently.
CLIENT_DISCONNECT_REASONS = frozenset({"io client disconnect", "client disconnect"})


class WirePayload(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# --- inbound -----------------------------------------------------------------


class SenderPayload(WirePayload):
    user_id: str = Field(alias="userId")
    name: str = ""
    username: str = ""

    def to_entity(self) -> Sender:
        return Sender(user_id=self.user_id, name=self.name, username=self.username)


class OnlineUserPayload(WirePayload):
    user_id: str = Field(alias="userId")
    username: str = ""
    name: str | None = None
    last_seen: datetime | None = Field(default=None, alias="lastSeen")

    def to_entity(self) -> OnlineUser:
        return OnlineUser(
            user_id=self.user_id,
            username=self.username,
            name=self.name,
            last_seen=self.last_seen,
        )


online_users_adapter = TypeAdapter(list[OnlineUserPayload])


class MessagePayload(WirePayload):
    chat_id: str = Field(alias="chatId")
    conversation_id: str = Field(alias="conversationId")
    sender_id: str = Field(alias="senderId")
    receiver_id: str = Field(alias="receiverId")
    message: str
    message_type: MessageType = Field(default=MessageType.TEXT, alias="messageType")
    is_read: bool = Field(default=False, alias="isRead")
    is_delivered: bool = Field(default=False, alias="isDelivered")
    is_edited: bool = Field(default=False, alias="isEdited")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    sender: SenderPayload | None = None

    def to_entity(self) -> Message:
        return Message(
            chat_id=self.chat_id,
            conversation_id=self.conversation_id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            body=self.message,
            type=self.message_type.value,
            is_read=self.is_read,
            is_delivered=self.is_delivered,
            is_edited=self.is_edited,
            created_at=self.created_at,
            updated_at=self.updated_at or self.created_at,
            sender=self.sender.to_entity() if self.sender else None,
        )


class MessageNotification(WirePayload):
    conversation_id: str = Field(alias="conversationId")
    sender: SenderPayload
    message: str = ""
    message_type: MessageType = Field(default=MessageType.TEXT, alias="messageType")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class UserTypingPayload(WirePayload):
    user_id: str = Field(alias="userId")
    username: str = ""
    conversation_id: str = Field(alias="conversationId")


class UserStoppedTypingPayload(WirePayload):
    user_id: str = Field(alias="userId")
    conversation_id: str = Field(alias="conversationId")


class MessagesReadPayload(WirePayload):
    conversation_id: str = Field(alias="conversationId")
    read_by: str = Field(alias="readBy")
    read_at: datetime | None = Field(default=None, alias="readAt")


# --- outbound ----------------------------------------------------------------


class SendMessageRequest(WirePayload):
    receiver_id: str = Field(alias="receiverId")
    message: str
    message_type: MessageType = Field(default=MessageType.TEXT, alias="messageType")


class ConversationRequest(WirePayload):
    conversation_id: str = Field(alias="conversationId")
