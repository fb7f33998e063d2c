from __future__ import annotations

from pydantic import BaseModel

from collab_chat.domain.value_objects.enums import Theme


class ChatPreferences(BaseModel):
    notifications_enabled: bool = False
    sound_enabled: bool = True
    theme: Theme = Theme.DARK
