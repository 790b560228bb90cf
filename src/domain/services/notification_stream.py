"""In-memory real-time fan-out of inbox mutations to connected clients."""

import itertools
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

import structlog
from pydantic.alias_generators import to_camel

from domain.entities.notification import Notification

logger = structlog.get_logger()


class StreamEventType(StrEnum):
    NEW = "new"
    READ = "read"
    ARCHIVED = "archived"
    REFRESH = "refresh"


@dataclass(frozen=True)
class StreamEvent:
    """Event pushed to a live client connection."""

    type: StreamEventType
    notification: Notification | None = None
    notification_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.notification is not None:
            payload["notification"] = {
                to_camel(key): value for key, value in asdict(self.notification).items()
            }
        if self.notification_id is not None:
            payload["notificationId"] = self.notification_id
        return payload


StreamCallback = Callable[[StreamEvent], None]


class NotificationStream:
    """Per-user pub/sub registry for live inbox updates.

    Each ``subscribe`` call gets its own handle, so one user can hold any
    number of concurrent connections (tabs, devices) and dropping one leaves
    the others untouched. State is local to this process.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, dict[int, StreamCallback]] = {}
        self._handles = itertools.count(1)

    def subscribe(self, user_id: str, callback: StreamCallback) -> Callable[[], None]:
        """Register a callback for a user's events.

        Returns:
            A callable removing exactly this subscription. Calling it more
            than once is harmless.
        """
        handle = next(self._handles)
        self._subscribers.setdefault(user_id, {})[handle] = callback
        logger.debug(
            "stream_subscribed",
            user_id=user_id,
            connections=len(self._subscribers[user_id]),
        )

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(user_id)
            if callbacks is None or handle not in callbacks:
                return
            del callbacks[handle]
            if not callbacks:
                del self._subscribers[user_id]
            logger.debug("stream_unsubscribed", user_id=user_id)

        return unsubscribe

    def publish(self, user_id: str, notification: Notification) -> None:
        self._fan_out(user_id, StreamEvent(type=StreamEventType.NEW, notification=notification))

    def publish_read(self, user_id: str, notification_id: str) -> None:
        self._fan_out(
            user_id, StreamEvent(type=StreamEventType.READ, notification_id=notification_id)
        )

    def publish_archived(self, user_id: str, notification_id: str) -> None:
        self._fan_out(
            user_id,
            StreamEvent(type=StreamEventType.ARCHIVED, notification_id=notification_id),
        )

    def publish_refresh(self, user_id: str) -> None:
        """Ask every client of a user to refetch the inbox."""
        self._fan_out(user_id, StreamEvent(type=StreamEventType.REFRESH))

    def _fan_out(self, user_id: str, event: StreamEvent) -> None:
        callbacks = self._subscribers.get(user_id)
        if not callbacks:
            return

        # Snapshot: callbacks may unsubscribe while we iterate
        for callback in list(callbacks.values()):
            try:
                callback(event)
            except Exception as e:
                logger.warning(
                    "stream_callback_failed",
                    user_id=user_id,
                    event_type=event.type.value,
                    error=str(e),
                )

    # --- Monitoring ---

    def is_connected(self, user_id: str) -> bool:
        return bool(self._subscribers.get(user_id))

    def connected_user_count(self) -> int:
        return len(self._subscribers)

    def total_connection_count(self) -> int:
        return sum(len(callbacks) for callbacks in self._subscribers.values())

    def close(self) -> None:
        """Drop every subscription. Called at shutdown."""
        self._subscribers.clear()
