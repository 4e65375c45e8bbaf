"""In-process event bus used for agent ``emit_events``.

Emission is fire-and-forget: ``emit`` never raises and never waits for
subscribers. Coroutine handlers are scheduled on the running loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

LOGGER = logging.getLogger(__name__)

EventHandler = Callable[["BusEvent"], Any]

WILDCARD = "*"


@dataclass(frozen=True)
class BusEvent:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


class EventBus:
    """Name-keyed publish/subscribe hub.

    Subscribing to ``"*"`` receives every event.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, name: str, handler: EventHandler) -> None:
        self._handlers.setdefault(name, []).append(handler)
        LOGGER.debug(f"Subscribed handler to event: {name}")

    def unsubscribe(self, name: str, handler: EventHandler) -> bool:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, name: str, payload: Dict[str, Any] | None = None) -> None:
        event = BusEvent(name=name, payload=dict(payload or {}))
        handlers = list(self._handlers.get(name, [])) + list(self._handlers.get(WILDCARD, []))
        if not handlers:
            LOGGER.debug(f"Event emitted with no subscribers: {name}")
            return

        for handler in handlers:
            try:
                result = handler(event)
            except Exception as e:
                LOGGER.warning(f"Event handler {handler!r} failed for event {name}: {e}")
                continue

            if inspect.isawaitable(result):
                self._schedule(name, result)

    async def drain(self) -> None:
        """Wait for scheduled coroutine handlers (mainly for tests and shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, name: str, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning(f"No running event loop, dropping async handler for event: {name}")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(awaitable)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_done(name, t))

    def _on_done(self, name: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOGGER.warning(f"Async event handler failed for event {name}: {error}")

    def subscriber_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))
