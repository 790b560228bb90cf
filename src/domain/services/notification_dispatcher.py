"""Notification dispatch: inbox entry first, then best-effort channels."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from domain.entities.notification import (
    SYSTEM_TENANT,
    DeliveryChannel,
    DeliveryStatus,
    Notification,
    NotificationDelivery,
    NotificationPreferences,
    NotificationType,
)
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.push.provider import IPushProvider, SendPushParams, SendPushResult

logger = structlog.get_logger()

BATCH_WINDOW_SECONDS = 60


def generate_batch_key(
    actor_user_id: str | None,
    type: NotificationType | str,
    now: float | None = None,
    window_seconds: int = BATCH_WINDOW_SECONDS,
) -> str:
    """Group key for notifications from one actor and type in one time window.

    Format: ``{actor|"system"}_{type}_{floor(now / window)}``.
    """
    timestamp = time.time() if now is None else now
    window = math.floor(timestamp / window_seconds)
    return f"{actor_user_id or 'system'}_{type}_{window}"


@dataclass
class NotifyParams:
    """Input for a single notification."""

    recipient_user_id: str
    type: NotificationType
    title: str
    body: str
    tenant_id: str | None = None
    deep_link: str | None = None
    data: dict[str, Any] | None = None
    actor_user_id: str | None = None


class NotificationDispatcher:
    """Creates inbox entries and attempts the enabled delivery channels.

    The inbox write is the authoritative record and its failure propagates.
    Preference lookup and push delivery are best-effort: their failures are
    logged (and, for push, recorded in the delivery audit log) but never
    undo the inbox entry.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        push_provider: IPushProvider,
        batch_window_seconds: int = BATCH_WINDOW_SECONDS,
    ) -> None:
        self._uow_factory = uow_factory
        self._push = push_provider
        self._batch_window_seconds = batch_window_seconds

    async def notify(self, params: NotifyParams) -> Notification:
        """Create a notification and deliver it on the recipient's channels."""
        batch_key = generate_batch_key(
            params.actor_user_id,
            params.type,
            window_seconds=self._batch_window_seconds,
        )

        # 1. Inbox entry
        async with self._uow_factory() as uow:
            notification = await uow.notifications.create(
                Notification(
                    recipient_user_id=params.recipient_user_id,
                    tenant_id=params.tenant_id or SYSTEM_TENANT,
                    actor_user_id=params.actor_user_id,
                    type=params.type,
                    title=params.title,
                    body=params.body,
                    deep_link=params.deep_link,
                    data=params.data,
                    batch_key=batch_key,
                )
            )
            await uow.commit()

        logger.info(
            "notification_created",
            notification_id=notification.id,
            recipient_user_id=notification.recipient_user_id,
            type=str(notification.type),
        )

        # 2. Preferences
        prefs = await self.resolve_preferences(params.recipient_user_id, params.tenant_id)

        # 3. In-app: the inbox entry and the live stream are the delivery
        if prefs.in_app_enabled:
            await self.record_delivery(
                notification.id, DeliveryChannel.IN_APP, DeliveryStatus.SENT
            )

        # 4. Push
        if prefs.push_enabled and self._push.is_initialized():
            await self._deliver_push(notification)

        return notification

    async def notify_many(
        self, params: NotifyParams, recipient_user_ids: list[str]
    ) -> list[Notification]:
        """Send the same notification to several recipients, in order."""
        return [
            await self.notify(replace(params, recipient_user_id=user_id))
            for user_id in recipient_user_ids
        ]

    async def record_delivery(
        self,
        notification_id: str,
        channel: DeliveryChannel,
        status: DeliveryStatus,
        provider_message_id: str | None = None,
        error: str | None = None,
    ) -> NotificationDelivery:
        """Append one delivery attempt to the audit log."""
        async with self._uow_factory() as uow:
            delivery = await uow.deliveries.create(
                NotificationDelivery(
                    notification_id=notification_id,
                    channel=channel,
                    status=status,
                    provider_message_id=provider_message_id,
                    error=error,
                )
            )
            await uow.commit()
            return delivery

    async def resolve_preferences(
        self, user_id: str, tenant_id: str | None
    ) -> NotificationPreferences:
        """Recipient channel toggles; defaults when the lookup fails."""
        try:
            async with self._uow_factory() as uow:
                return await uow.preferences.get_preferences(user_id, tenant_id)
        except Exception as e:
            logger.warning(
                "preference_lookup_failed",
                user_id=user_id,
                tenant_id=tenant_id,
                error=str(e),
            )
            return NotificationPreferences(user_id=user_id, tenant_id=tenant_id)

    async def _deliver_push(self, notification: Notification) -> None:
        try:
            result = await self._send_push(notification)
        except Exception as e:
            logger.warning(
                "push_delivery_failed",
                notification_id=notification.id,
                provider=self._push.name,
                error=str(e),
            )
            await self.record_delivery(
                notification.id,
                DeliveryChannel.PUSH,
                DeliveryStatus.FAILED,
                error=str(e),
            )
            return

        if result.success:
            await self.record_delivery(
                notification.id,
                DeliveryChannel.PUSH,
                DeliveryStatus.SENT,
                provider_message_id=result.message_id,
            )
        else:
            logger.warning(
                "push_delivery_rejected",
                notification_id=notification.id,
                provider=self._push.name,
                error=result.error,
            )
            await self.record_delivery(
                notification.id,
                DeliveryChannel.PUSH,
                DeliveryStatus.FAILED,
                error=result.error or "push provider reported failure",
            )

    async def _send_push(self, notification: Notification) -> SendPushResult:
        batched: list[Notification] = []
        if notification.batch_key:
            async with self._uow_factory() as uow:
                batched = await uow.notifications.get_by_batch_key(notification.batch_key)
            # Batch keys are per actor and type, not per recipient
            batched = [
                n for n in batched if n.recipient_user_id == notification.recipient_user_id
            ]

        if len(batched) > 1:
            return await self._push.send_batched_push(
                notification.recipient_user_id,
                [self._to_push_params(n) for n in batched],
            )
        return await self._push.send_push(self._to_push_params(notification))

    @staticmethod
    def _to_push_params(notification: Notification) -> SendPushParams:
        return SendPushParams(
            user_id=notification.recipient_user_id,
            title=notification.title,
            body=notification.body,
            type=str(notification.type),
            deep_link=notification.deep_link,
            data=notification.data,
        )
