from __future__ import annotations

from pydantic import Field

from collab_chat.domain.entities.message import Message
from collab_chat.infrastructure.realtime.protocol import MessagePayload, WirePayload


class Pagination(WirePayload):
    current_page: int = Field(default=1, alias="currentPage")
    total_pages: int = Field(default=0, alias="totalPages")
    has_next: bool = Field(default=False, alias="hasNext")
    has_prev: bool = Field(default=False, alias="hasPrev")


class MessagePage(WirePayload):
    messages: list[MessagePayload] = []
    pagination: Pagination = Pagination()

    def entities(self) -> list[Message]:
        """Messages oldest first, as the server returns them."""
        return [m.to_entity() for m in self.messages]


class EditMessageRequest(WirePayload):
    message: str
