"""SQLAlchemy implementation of the inbox and delivery audit repositories."""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import (
    DeliveryChannel,
    DeliveryStatus,
    Notification,
    NotificationDelivery,
    NotificationType,
)
from infrastructure.database.models import NotificationDeliveryModel, NotificationModel


class SQLAlchemyNotificationRepository:
    """SQLAlchemy implementation of INotificationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        """Create a new inbox entry."""
        model = self._to_model(notification)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get(self, notification_id: str) -> Notification | None:
        """Get an inbox entry by ID."""
        stmt = select(NotificationModel).where(NotificationModel.id == notification_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_for_recipient(self, notification_id: str, user_id: str) -> Notification | None:
        """Get an inbox entry by ID, scoped to its recipient."""
        stmt = select(NotificationModel).where(
            NotificationModel.id == notification_id,
            NotificationModel.recipient_user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_inbox(
        self,
        user_id: str,
        tenant_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        """Get non-archived entries for a user, newest first."""
        stmt = select(NotificationModel).where(
            NotificationModel.recipient_user_id == user_id,
            NotificationModel.archived_at.is_(None),
        )
        if tenant_id is not None:
            stmt = stmt.where(NotificationModel.tenant_id == tenant_id)

        stmt = (
            stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def get_unread_count(self, user_id: str, tenant_id: str | None = None) -> int:
        """Count entries that are neither read nor archived."""
        stmt = select(func.count(NotificationModel.id)).where(
            NotificationModel.recipient_user_id == user_id,
            NotificationModel.read_at.is_(None),
            NotificationModel.archived_at.is_(None),
        )
        if tenant_id is not None:
            stmt = stmt.where(NotificationModel.tenant_id == tenant_id)

        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        """Set read_at if unset. Returns True if a row changed."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.recipient_user_id == user_id,
                NotificationModel.read_at.is_(None),
            )
            .values(read_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[union-attr]

    async def mark_all_as_read(self, user_id: str, tenant_id: str | None = None) -> int:
        """Set read_at on every unread, non-archived entry."""
        stmt = update(NotificationModel).where(
            NotificationModel.recipient_user_id == user_id,
            NotificationModel.read_at.is_(None),
            NotificationModel.archived_at.is_(None),
        )
        if tenant_id is not None:
            stmt = stmt.where(NotificationModel.tenant_id == tenant_id)

        result = await self._session.execute(stmt.values(read_at=datetime.utcnow()))
        return result.rowcount  # type: ignore[union-attr]

    async def archive(self, notification_id: str, user_id: str) -> bool:
        """Set archived_at if unset. Returns True if a row changed."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.recipient_user_id == user_id,
                NotificationModel.archived_at.is_(None),
            )
            .values(archived_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[union-attr]

    async def get_by_batch_key(self, batch_key: str) -> list[Notification]:
        """Get all entries sharing a batch key, newest first."""
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.batch_key == batch_key)
            .order_by(NotificationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    # --- Converters ---

    def _to_entity(self, model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            tenant_id=model.tenant_id,
            recipient_user_id=model.recipient_user_id,
            actor_user_id=model.actor_user_id,
            type=NotificationType(model.type),
            title=model.title,
            body=model.body,
            deep_link=model.deep_link,
            data=model.data,
            batch_key=model.batch_key,
            created_at=model.created_at,
            read_at=model.read_at,
            archived_at=model.archived_at,
        )

    def _to_model(self, entity: Notification) -> NotificationModel:
        return NotificationModel(
            id=entity.id,
            tenant_id=entity.tenant_id,
            recipient_user_id=entity.recipient_user_id,
            actor_user_id=entity.actor_user_id,
            type=entity.type.value,
            title=entity.title,
            body=entity.body,
            deep_link=entity.deep_link,
            data=entity.data,
            batch_key=entity.batch_key,
            created_at=entity.created_at,
            read_at=entity.read_at,
            archived_at=entity.archived_at,
        )


class SQLAlchemyDeliveryRepository:
    """SQLAlchemy implementation of IDeliveryRepository. Insert-only."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, delivery: NotificationDelivery) -> NotificationDelivery:
        model = NotificationDeliveryModel(
            id=delivery.id,
            notification_id=delivery.notification_id,
            channel=delivery.channel.value,
            status=delivery.status.value,
            provider_message_id=delivery.provider_message_id,
            error=delivery.error,
            created_at=delivery.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def list_for_notification(self, notification_id: str) -> list[NotificationDelivery]:
        stmt = (
            select(NotificationDeliveryModel)
            .where(NotificationDeliveryModel.notification_id == notification_id)
            .order_by(NotificationDeliveryModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    def _to_entity(self, model: NotificationDeliveryModel) -> NotificationDelivery:
        return NotificationDelivery(
            id=model.id,
            notification_id=model.notification_id,
            channel=DeliveryChannel(model.channel),
            status=DeliveryStatus(model.status),
            provider_message_id=model.provider_message_id,
            error=model.error,
            created_at=model.created_at,
        )
