"""In-process publish/subscribe for board changes.

An EventBus is an ordinary object handed to whoever needs it; nothing here
is module-level state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class BoardChanged(BaseModel):
    """Published after a project's task document is rewritten."""

    model_config = ConfigDict(frozen=True)

    project: str
    task_id: int
    action: Literal["created", "subtask_added", "status_changed"]


Handler = Callable[[BoardChanged], None]


class EventBus:
    """Synchronous fan-out to subscribed handlers, in subscription order."""

    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that removes it again."""
        self._handlers.append(handler)
        logger.debug("subscribed %r", handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: BoardChanged) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("event handler %r failed for %s", handler, event)

    def __len__(self) -> int:
        return len(self._handlers)
