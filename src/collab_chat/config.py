from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "https://collabforge.onrender.com/api"
    SOCKET_URL: str | None = None
    SOCKET_TRANSPORTS: list[str] = ["websocket", "polling"]
    SOCKET_TIMEOUT_SECONDS: int = 20

    RECONNECT_MAX_ATTEMPTS: int = 5
    RECONNECT_BASE_DELAY_SECONDS: float = 1.0

    TYPING_DEBOUNCE_SECONDS: float = 3.0
    TYPING_INDICATOR_TTL_SECONDS: float = 3.0
    NOTIFICATION_TTL_SECONDS: float = 5.0

    HTTP_TIMEOUT_SECONDS: float = 30.0

    REDIS_URL: str = "redis://localhost:6379/0"
    CHAT_STORE_PREFIX: str = "collabforge.chat"

    AUTH_TOKEN: str | None = None
    LOG_LEVEL: str = "INFO"

    @property
    def socket_url(self) -> str:
        if self.SOCKET_URL:
            return self.SOCKET_URL
        return self.API_BASE_URL.replace("/api", "")

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
