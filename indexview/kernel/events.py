"""
IndexView Kernel — Event Bus

Named-event bus standing in for the host workspace.
The index triggers REFRESH_EVENT on it; index-backed views listen.

Registration returns an EventRef token; `offref(token)` releases it.
Releasing the same token twice is harmless.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

_ref_ids = itertools.count(1)


@dataclass(frozen=True, eq=False)
class EventRef:
    """Opaque token for one registered callback."""

    name: str
    callback: Callable[..., Any]
    id: int = field(default_factory=lambda: next(_ref_ids))


class EventBus:
    """Synchronous named-event dispatcher."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventRef]] = {}

    def on(self, name: str, callback: Callable[..., Any]) -> EventRef:
        ref = EventRef(name=name, callback=callback)
        self._handlers.setdefault(name, []).append(ref)
        return ref

    def offref(self, ref: EventRef) -> None:
        handlers = self._handlers.get(ref.name)
        if not handlers or ref not in handlers:
            return
        handlers.remove(ref)
        if not handlers:
            del self._handlers[ref.name]

    def trigger(self, name: str, *args: Any) -> int:
        """
        Call every handler registered for `name`, in registration order.
        Returns the number of handlers called. Handler errors propagate.
        """
        # Snapshot so handlers may unsubscribe while we dispatch.
        handlers = list(self._handlers.get(name, []))
        logger.debug("event bus: %s -> %d handler(s)", name, len(handlers))
        for ref in handlers:
            ref.callback(*args)
        return len(handlers)

    def listener_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))

