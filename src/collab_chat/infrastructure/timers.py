"""Trailing-edge debounce built on explicit, cancellable loop timers."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from collab_chat.config import settings

logger = logging.getLogger(__name__)

DebouncedCallback = Callable[[], Any]


class Debouncer:
    """Runs ``callback`` once ``delay`` seconds pass without another call.

    Every call (or ``reset()``) cancels the pending timer and schedules a new
    one. Coroutine callbacks are scheduled as tasks on the running loop.
    Must be driven from inside a running event loop.
    """

    def __init__(self, callback: DebouncedCallback, delay: float = 3.0) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Fire now if a call is pending."""
        if self._handle is not None:
            self.cancel()
            self._fire()

    def _fire(self) -> None:
        self._handle = None
        try:
            result = self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced callback failed", exc_info=exc)


def create_typing_debouncer(
    callback: DebouncedCallback,
    delay: float | None = None,
) -> Debouncer:
    return Debouncer(
        callback,
        settings.TYPING_DEBOUNCE_SECONDS if delay is None else delay,
    )
