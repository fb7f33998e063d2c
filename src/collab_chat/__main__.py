"""Entrypoint: python -m collab_chat"""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from collab_chat.config import settings
from collab_chat.domain.entities.message import Message
from collab_chat.domain.entities.online_user import OnlineUser
from collab_chat.domain.value_objects.enums import ConnectionStatus
from collab_chat.infrastructure.auth.token_provider import TokenAuthProvider
from collab_chat.infrastructure.realtime.session import ChatSession
from collab_chat.infrastructure.store.redis_store import RedisChatStore
from collab_chat.services.formatting import (
    connection_status_text,
    format_message_time,
    generate_notification_text,
)
from collab_chat.services.notifications import NotificationCenter, load_notification_center

logger = logging.getLogger(__name__)


def _log_message(message: Message) -> None:
    sender = message.sender.name if message.sender else message.sender_id
    logger.info(
        "[%s] %s",
        format_message_time(message.created_at),
        generate_notification_text(sender, message.body, message.type),
    )


def _log_online(user: OnlineUser) -> None:
    logger.info("%s is online", user.name or user.username or user.user_id)


def _log_offline(user: OnlineUser) -> None:
    logger.info("%s went offline", user.name or user.username or user.user_id)


async def run_client() -> None:
    auth = TokenAuthProvider(settings.AUTH_TOKEN)
    auth_data = auth.get_auth_data() if auth.is_authenticated() else None
    if auth_data is None:
        logger.error("AUTH_TOKEN is missing or expired, not connecting")
        return

    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    store = RedisChatStore(redis, auth_data.user_id or "anonymous")
    try:
        notifications = await load_notification_center(store)
    except RedisError:
        logger.warning("Chat store unavailable, notifications enabled by default")
        notifications = NotificationCenter()

    session = ChatSession(auth)
    gave_up = asyncio.Event()

    def _on_status(status: ConnectionStatus) -> None:
        logger.info("Connection: %s", connection_status_text(status))
        if status == ConnectionStatus.GAVE_UP:
            gave_up.set()

    session.on_status_change(_on_status)
    session.on_new_message(_log_message)
    session.on_message_notification(notifications.show)
    session.on_user_online(_log_online)
    session.on_user_offline(_log_offline)

    try:
        async with session:
            await gave_up.wait()
    finally:
        notifications.clear()
        await redis.aclose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
