"""Synchronous best-effort event emission for loop observers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

EventCallback = Callable[..., Any]


class LoopEvent(str, Enum):
    ITERATION = "loop:iteration"
    MAX_ACTIONS_REACHED = "loop:max_actions"


class EventBus:
    """Fan-out of loop events; a failing subscriber never reaches the emitter."""

    def __init__(self) -> None:
        self._subscribers: dict[LoopEvent, list[EventCallback]] = {}

    def subscribe(self, event: LoopEvent, callback: EventCallback) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it."""

        callbacks = self._subscribers.setdefault(event, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: LoopEvent, *args: Any) -> None:
        for callback in list(self._subscribers.get(event, ())):
            try:
                callback(*args)
            except Exception:  # noqa: BLE001
                logger.warning("Subscriber for %s failed", event.value, exc_info=True)
