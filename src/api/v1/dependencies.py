"""Dependency injection for API v1.

Process-wide notification components are built once by the application
lifespan, stored on ``app.state.notifications`` and resolved per request.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from fastapi import Request

from core.config import Settings
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.event_bus import EventBus
from domain.services.notification_dispatcher import NotificationDispatcher
from domain.services.notification_handlers import NotificationHandlers
from domain.services.notification_service import NotificationService
from domain.services.notification_stream import NotificationStream
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.mailer.provider import IMailer
from infrastructure.push.provider import IPushProvider

logger = structlog.get_logger()


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@dataclass
class NotificationComponents:
    """Everything the notification pipeline needs, wired together."""

    uow_factory: Callable[[], IUnitOfWork]
    bus: EventBus
    stream: NotificationStream
    push_provider: IPushProvider
    mailer: IMailer
    dispatcher: NotificationDispatcher
    handlers: NotificationHandlers
    stream_keepalive_seconds: float = 15.0
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        settings: Settings,
        uow_factory: Callable[[], IUnitOfWork],
        push_provider: IPushProvider,
        mailer: IMailer,
    ) -> "NotificationComponents":
        """Construct the pipeline and register every event handler."""
        bus = EventBus()
        stream = NotificationStream()
        dispatcher = NotificationDispatcher(
            uow_factory,
            push_provider,
            batch_window_seconds=settings.notification_batch_window_seconds,
        )
        handlers = NotificationHandlers(
            dispatcher,
            stream,
            push_provider,
            mailer,
            app_url=settings.app_url,
        )
        components = cls(
            uow_factory=uow_factory,
            bus=bus,
            stream=stream,
            push_provider=push_provider,
            mailer=mailer,
            dispatcher=dispatcher,
            handlers=handlers,
            stream_keepalive_seconds=settings.stream_keepalive_seconds,
        )
        components._unsubscribers = handlers.register(bus)
        return components

    def notification_service(self) -> NotificationService:
        return NotificationService(self.uow_factory, self.stream, self.push_provider)

    async def shutdown(self) -> None:
        """Detach handlers, drop live subscriptions, close provider clients."""
        self.bus.remove_all_listeners()
        self._unsubscribers.clear()
        self.stream.close()
        await self.push_provider.close()
        await self.mailer.close()
        logger.info("notification_components_closed")


def get_components(request: Request) -> NotificationComponents:
    """Get the notification components of the running application."""
    components: NotificationComponents | None = getattr(
        request.app.state, "notifications", None
    )
    if components is None:
        raise RuntimeError("Notification components not initialized")
    return components


def get_event_bus(request: Request) -> EventBus:
    return get_components(request).bus


def get_notification_stream(request: Request) -> NotificationStream:
    return get_components(request).stream


def get_notification_service(request: Request) -> NotificationService:
    """Get Notification service instance."""
    return get_components(request).notification_service()
