"""SQLAlchemy implementation of preference and push target repositories."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import NotificationPreferences, NotificationTarget
from infrastructure.database.models import NotificationPreferenceModel, NotificationTargetModel


class SQLAlchemyPreferenceRepository:
    """SQLAlchemy implementation of IPreferenceRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_row(
        self, user_id: str, tenant_id: str | None
    ) -> NotificationPreferenceModel | None:
        stmt = select(NotificationPreferenceModel).where(
            NotificationPreferenceModel.user_id == user_id
        )
        if tenant_id is None:
            stmt = stmt.where(NotificationPreferenceModel.tenant_id.is_(None))
        else:
            stmt = stmt.where(NotificationPreferenceModel.tenant_id == tenant_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_preferences(
        self, user_id: str, tenant_id: str | None = None
    ) -> NotificationPreferences:
        """Resolve preferences: tenant row, then global row, then defaults."""
        if tenant_id is not None:
            model = await self._get_row(user_id, tenant_id)
            if model:
                return self._to_entity(model)

        model = await self._get_row(user_id, None)
        if model:
            return self._to_entity(model)

        return NotificationPreferences(user_id=user_id, tenant_id=tenant_id)

    async def upsert_preferences(self, prefs: NotificationPreferences) -> NotificationPreferences:
        """Create or update the row for (user, tenant)."""
        model = await self._get_row(prefs.user_id, prefs.tenant_id)
        if model:
            model.in_app_enabled = prefs.in_app_enabled
            model.push_enabled = prefs.push_enabled
            model.email_enabled = prefs.email_enabled
            model.marketing_email_enabled = prefs.marketing_email_enabled
            model.updated_at = datetime.utcnow()
        else:
            model = NotificationPreferenceModel(
                id=prefs.id,
                user_id=prefs.user_id,
                tenant_id=prefs.tenant_id,
                in_app_enabled=prefs.in_app_enabled,
                push_enabled=prefs.push_enabled,
                email_enabled=prefs.email_enabled,
                marketing_email_enabled=prefs.marketing_email_enabled,
            )
            self._session.add(model)

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    def _to_entity(self, model: NotificationPreferenceModel) -> NotificationPreferences:
        return NotificationPreferences(
            id=model.id,
            user_id=model.user_id,
            tenant_id=model.tenant_id,
            in_app_enabled=model.in_app_enabled,
            push_enabled=model.push_enabled,
            email_enabled=model.email_enabled,
            marketing_email_enabled=model.marketing_email_enabled,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class SQLAlchemyNotificationTargetRepository:
    """SQLAlchemy implementation of INotificationTargetRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> NotificationTarget | None:
        stmt = select(NotificationTargetModel).where(NotificationTargetModel.user_id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def upsert(self, target: NotificationTarget) -> NotificationTarget:
        stmt = select(NotificationTargetModel).where(
            NotificationTargetModel.user_id == target.user_id
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model:
            model.push_subscriber_id = target.push_subscriber_id
            model.expo_push_token = target.expo_push_token
            model.last_active_at = target.last_active_at
            model.updated_at = datetime.utcnow()
        else:
            model = NotificationTargetModel(
                id=target.id,
                user_id=target.user_id,
                push_subscriber_id=target.push_subscriber_id,
                expo_push_token=target.expo_push_token,
                last_active_at=target.last_active_at,
            )
            self._session.add(model)

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    def _to_entity(self, model: NotificationTargetModel) -> NotificationTarget:
        return NotificationTarget(
            id=model.id,
            user_id=model.user_id,
            push_subscriber_id=model.push_subscriber_id,
            expo_push_token=model.expo_push_token,
            last_active_at=model.last_active_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
