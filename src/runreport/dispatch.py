"""Fan-out of engine lifecycle events to registered listeners."""

from __future__ import annotations

from typing import Iterable, Protocol

import structlog

from runreport.events import RunEvent

logger = structlog.get_logger()


class EventListener(Protocol):
    def handle(self, event: RunEvent) -> None:
        ...


class EventDispatcher:
    """Delivers each event to every listener, in registration order.

    Delivery is synchronous; an exception raised by a listener stops
    delivery of that event and propagates to the engine.
    """

    def __init__(self, listeners: Iterable[EventListener] = ()) -> None:
        self._listeners: list[EventListener] = list(listeners)

    @property
    def listeners(self) -> list[EventListener]:
        return list(self._listeners)

    def register(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, event: RunEvent) -> None:
        for listener in self._listeners:
            listener.handle(event)

    def replay(self, events: Iterable[RunEvent]) -> int:
        """Dispatch events in order; returns how many were delivered."""
        count = 0
        for event in events:
            self.dispatch(event)
            count += 1
        logger.debug("events_replayed", count=count, listeners=len(self._listeners))
        return count
