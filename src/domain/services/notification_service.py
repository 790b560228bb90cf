"""Inbox service: reads and recipient-scoped mutations of notifications."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from core.exceptions import NotificationNotFoundError, PushNotConfiguredError
from domain.entities.notification import (
    Notification,
    NotificationDelivery,
    NotificationPreferences,
    NotificationTarget,
    NotificationType,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_stream import NotificationStream
from infrastructure.push.provider import (
    IPushProvider,
    Platform,
    PushCredentials,
    SendPushParams,
    SubscriberInfo,
)

logger = structlog.get_logger()

NOOP_PROVIDER_NAME = "noop"


@dataclass
class ProviderTestResult:
    """Outcome of a provider smoke test."""

    success: bool
    configured: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def _subscriber_info(user_id: str, email: str | None, display_name: str | None) -> SubscriberInfo:
    first_name, _, last_name = (display_name or "").partition(" ")
    return SubscriberInfo(
        user_id=user_id,
        email=email,
        first_name=first_name or None,
        last_name=last_name or None,
    )


class NotificationService:
    """Service layer for the notification inbox.

    Every mutation is scoped to the owning recipient and idempotent, and is
    mirrored to the user's live connections through the stream.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        stream: NotificationStream,
        push_provider: IPushProvider,
    ) -> None:
        self._uow_factory = uow_factory
        self._stream = stream
        self._push = push_provider

    # --- Reads ---

    async def get_inbox(
        self,
        user_id: str,
        tenant_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Notification], int, bool]:
        """Get a page of the inbox.

        Returns:
            Tuple of (notifications, unread_count, has_more).
        """
        async with self._uow_factory() as uow:
            # One extra row tells us whether another page exists
            rows = await uow.notifications.get_inbox(
                user_id, tenant_id=tenant_id, limit=limit + 1, offset=offset
            )
            unread_count = await uow.notifications.get_unread_count(user_id, tenant_id)

        has_more = len(rows) > limit
        return rows[:limit], unread_count, has_more

    async def get_notification(self, notification_id: str, user_id: str) -> Notification:
        """Direct lookup, archived entries included."""
        async with self._uow_factory() as uow:
            notification = await uow.notifications.get_for_recipient(notification_id, user_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def get_unread_count(self, user_id: str, tenant_id: str | None = None) -> int:
        async with self._uow_factory() as uow:
            return await uow.notifications.get_unread_count(user_id, tenant_id)

    async def get_batch(self, batch_key: str, user_id: str) -> list[Notification]:
        """Get the caller's notifications sharing a batch key."""
        async with self._uow_factory() as uow:
            batch = await uow.notifications.get_by_batch_key(batch_key)
        return [n for n in batch if n.recipient_user_id == user_id]

    async def get_deliveries(
        self, notification_id: str, user_id: str
    ) -> list[NotificationDelivery]:
        """Get the delivery audit trail of one of the caller's notifications."""
        async with self._uow_factory() as uow:
            notification = await uow.notifications.get_for_recipient(notification_id, user_id)
            if notification is None:
                raise NotificationNotFoundError(notification_id)
            return await uow.deliveries.list_for_notification(notification_id)

    # --- Mutations ---

    async def mark_as_read(self, notification_id: str, user_id: str) -> None:
        """Mark a notification as read. The first read timestamp is kept."""
        async with self._uow_factory() as uow:
            notification = await uow.notifications.get_for_recipient(notification_id, user_id)
            if notification is None:
                raise NotificationNotFoundError(notification_id)
            changed = await uow.notifications.mark_as_read(notification_id, user_id)
            await uow.commit()

        if changed:
            self._stream.publish_read(user_id, notification_id)

    async def mark_all_as_read(self, user_id: str, tenant_id: str | None = None) -> int:
        """Mark every unread notification as read. Returns count of marked."""
        async with self._uow_factory() as uow:
            count = await uow.notifications.mark_all_as_read(user_id, tenant_id)
            await uow.commit()

        self._stream.publish_refresh(user_id)
        return count

    async def archive(self, notification_id: str, user_id: str) -> None:
        """Archive a notification. The first archive timestamp is kept."""
        async with self._uow_factory() as uow:
            notification = await uow.notifications.get_for_recipient(notification_id, user_id)
            if notification is None:
                raise NotificationNotFoundError(notification_id)
            changed = await uow.notifications.archive(notification_id, user_id)
            await uow.commit()

        if changed:
            self._stream.publish_archived(user_id, notification_id)

    # --- Preferences ---

    async def get_preferences(
        self, user_id: str, tenant_id: str | None = None
    ) -> NotificationPreferences:
        async with self._uow_factory() as uow:
            return await uow.preferences.get_preferences(user_id, tenant_id)

    async def update_preferences(
        self,
        user_id: str,
        tenant_id: str | None = None,
        in_app_enabled: bool | None = None,
        push_enabled: bool | None = None,
        email_enabled: bool | None = None,
        marketing_email_enabled: bool | None = None,
    ) -> NotificationPreferences:
        """Update channel toggles for (user, tenant).

        Unset fields keep their currently resolved value, so a first tenant
        row inherits the user's global settings.
        """
        async with self._uow_factory() as uow:
            current = await uow.preferences.get_preferences(user_id, tenant_id)
            prefs = NotificationPreferences(
                user_id=user_id,
                tenant_id=tenant_id,
                in_app_enabled=(
                    current.in_app_enabled if in_app_enabled is None else in_app_enabled
                ),
                push_enabled=current.push_enabled if push_enabled is None else push_enabled,
                email_enabled=current.email_enabled if email_enabled is None else email_enabled,
                marketing_email_enabled=(
                    current.marketing_email_enabled
                    if marketing_email_enabled is None
                    else marketing_email_enabled
                ),
            )
            result = await uow.preferences.upsert_preferences(prefs)
            await uow.commit()
            return result

    # --- Push registration ---

    def _push_configured(self) -> bool:
        return self._push.name != NOOP_PROVIDER_NAME and self._push.is_initialized()

    async def register_push_token(
        self,
        user_id: str,
        token: str,
        platform: Platform,
        is_expo_push_token: bool = False,
        email: str | None = None,
        display_name: str | None = None,
    ) -> NotificationTarget:
        """Register a device with the push provider and store the mapping."""
        if not self._push_configured():
            raise PushNotConfiguredError()

        await self._push.identify_subscriber(_subscriber_info(user_id, email, display_name))
        await self._push.set_credentials(
            user_id,
            PushCredentials(
                platform=platform,
                token=token,
                expo_push_token=token if is_expo_push_token else None,
            ),
        )

        async with self._uow_factory() as uow:
            target = await uow.targets.get(user_id) or NotificationTarget(user_id=user_id)
            target.push_subscriber_id = user_id
            if is_expo_push_token:
                target.expo_push_token = token
            target.last_active_at = datetime.utcnow()
            saved = await uow.targets.upsert(target)
            await uow.commit()

        logger.info("push_token_registered", user_id=user_id, platform=platform)
        return saved

    async def remove_push_token(self, user_id: str, platform: Platform) -> None:
        if not self._push_configured():
            raise PushNotConfiguredError()

        await self._push.remove_credentials(user_id, platform)

        async with self._uow_factory() as uow:
            target = await uow.targets.get(user_id)
            if target is not None:
                target.expo_push_token = None
                await uow.targets.upsert(target)
                await uow.commit()

        logger.info("push_token_removed", user_id=user_id, platform=platform)

    async def get_push_target(self, user_id: str) -> NotificationTarget:
        """Get the caller's push identity, empty when never registered."""
        async with self._uow_factory() as uow:
            target = await uow.targets.get(user_id)
        return target or NotificationTarget(user_id=user_id)

    async def update_last_active(self, user_id: str) -> None:
        """Record that the user has a live client. Failures are logged only."""
        try:
            async with self._uow_factory() as uow:
                target = await uow.targets.get(user_id) or NotificationTarget(user_id=user_id)
                target.last_active_at = datetime.utcnow()
                await uow.targets.upsert(target)
                await uow.commit()
        except Exception as e:
            logger.warning("last_active_update_failed", user_id=user_id, error=str(e))

    async def send_test_notification(
        self,
        user_id: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> ProviderTestResult:
        """Send a provider-side in-app notification to the caller."""
        if not self._push_configured():
            return ProviderTestResult(
                success=False,
                configured=False,
                error="Push provider is not configured",
            )

        try:
            await self._push.identify_subscriber(
                _subscriber_info(user_id, email, display_name)
            )
            result = await self._push.send_in_app(
                SendPushParams(
                    user_id=user_id,
                    title="Test In-App Notification",
                    body="This is a test in-app notification. "
                    "If you see this, push delivery is working.",
                    type=NotificationType.TEST.value,
                    data={"type": "test", "timestamp": datetime.utcnow().isoformat()},
                )
            )
        except Exception as e:
            logger.warning("test_notification_failed", user_id=user_id, error=str(e))
            return ProviderTestResult(success=False, configured=True, error=str(e))

        if not result.success:
            return ProviderTestResult(
                success=False,
                configured=True,
                error=result.error or "Failed to send test notification",
            )
        return ProviderTestResult(
            success=True, configured=True, message_id=result.message_id
        )
