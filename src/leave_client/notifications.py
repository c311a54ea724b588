"""Session notification channel.

The request pipeline never touches session state directly. It emits two
events and whoever owns the session (normally ``SessionManager``) decides
what they mean for the application.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

Payload = dict[str, Any]
Handler = Callable[[Payload], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


class SessionEvent(StrEnum):
    TOKEN_REFRESHED = "token_refreshed"  # payload: {"token": str}
    UNAUTHORIZED = "unauthorized"  # payload: {}


class NotificationChannel(Protocol):
    """Injectable pub/sub port used by the refresh coordinator."""

    async def emit(self, event: str, payload: Payload) -> None: ...

    def subscribe(self, event: str, handler: Handler) -> Unsubscribe: ...


class EventBus:
    """In-process notification channel.

    Handlers run in subscription order. Plain callables run inline;
    coroutine handlers are scheduled as tasks and ``emit`` does not wait
    for them, so a listener that itself issues requests cannot block the
    emitter. Handler errors are logged and never reach the emitter.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(self, event: str, handler: Handler) -> Unsubscribe:
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def emit(self, event: str, payload: Payload) -> None:
        logger.debug("notification_emit", notification=event)
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
            except Exception:
                logger.exception("notification_handler_failed", notification=event)
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)

    def _schedule(self, event: str, awaitable: Awaitable[None]) -> None:
        async def run() -> None:
            try:
                await awaitable
            except Exception:
                logger.exception("notification_handler_failed", notification=event)

        task = asyncio.create_task(run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every scheduled handler task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
