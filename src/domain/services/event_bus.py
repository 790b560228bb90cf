"""In-process publish/subscribe bus for application events."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from domain.entities.events import AppEvent

logger = structlog.get_logger()

E = TypeVar("E")

EventHandler = Callable[[Any], Awaitable[None]]


class EventBus:
    """Typed event bus.

    Handlers are keyed by event class and kept in registration order.
    ``emit`` awaits every handler for the event before returning. There is
    no persistence and no replay: events emitted with no listener are lost.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def on(
        self,
        event_type: type[E],
        handler: Callable[[E], Awaitable[None]],
    ) -> Callable[[], None]:
        """Register a handler for an event type.

        Returns:
            A callable that removes exactly this registration.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            current = self._handlers.get(event_type)
            if current is None:
                return
            try:
                current.remove(handler)
            except ValueError:
                return
            if not current:
                del self._handlers[event_type]

        return unsubscribe

    async def emit(self, event: AppEvent) -> None:
        """Dispatch an event to every registered handler concurrently.

        A failing handler does not stop its siblings. Once all handlers
        have settled, the first failure is re-raised to the caller.
        """
        handlers = list(self._handlers.get(type(event), ()))
        if not handlers:
            logger.debug("event_without_listeners", event_name=event.name)
            return

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors:
            logger.error(
                "event_handler_failed",
                event_name=event.name,
                error=str(error),
                error_type=type(error).__name__,
            )
        if errors:
            raise errors[0]

    def listener_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, ()))

    def remove_all_listeners(self) -> None:
        """Drop every registration. Called at shutdown."""
        self._handlers.clear()
