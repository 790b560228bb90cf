"""Notification repository protocols."""

from typing import Protocol

from domain.entities.notification import (
    Notification,
    NotificationDelivery,
    NotificationPreferences,
    NotificationTarget,
)


class INotificationRepository(Protocol):
    """Repository interface for inbox entries."""

    async def create(self, notification: Notification) -> Notification:
        """Create a new inbox entry."""
        ...

    async def get(self, notification_id: str) -> Notification | None:
        """Get an inbox entry by ID, archived or not."""
        ...

    async def get_for_recipient(self, notification_id: str, user_id: str) -> Notification | None:
        """Get an inbox entry by ID only if ``user_id`` is its recipient."""
        ...

    async def get_inbox(
        self,
        user_id: str,
        tenant_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        """Get non-archived entries for a user, newest first."""
        ...

    async def get_unread_count(self, user_id: str, tenant_id: str | None = None) -> int:
        """Count entries that are neither read nor archived."""
        ...

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        """Set read_at if unset. Returns True if a row changed."""
        ...

    async def mark_all_as_read(self, user_id: str, tenant_id: str | None = None) -> int:
        """Set read_at on every unread entry. Returns count updated."""
        ...

    async def archive(self, notification_id: str, user_id: str) -> bool:
        """Set archived_at if unset. Returns True if a row changed."""
        ...

    async def get_by_batch_key(self, batch_key: str) -> list[Notification]:
        """Get all entries sharing a batch key, newest first."""
        ...


class IDeliveryRepository(Protocol):
    """Repository interface for the append-only delivery audit log."""

    async def create(self, delivery: NotificationDelivery) -> NotificationDelivery:
        """Append a delivery record."""
        ...

    async def list_for_notification(self, notification_id: str) -> list[NotificationDelivery]:
        """Get every delivery attempt for a notification, oldest first."""
        ...


class IPreferenceRepository(Protocol):
    """Repository interface for user channel preferences."""

    async def get_preferences(
        self, user_id: str, tenant_id: str | None = None
    ) -> NotificationPreferences:
        """Resolve preferences: tenant row, then global row, then defaults."""
        ...

    async def upsert_preferences(self, prefs: NotificationPreferences) -> NotificationPreferences:
        """Create or update the row for (user, tenant)."""
        ...


class INotificationTargetRepository(Protocol):
    """Repository interface for push identity mappings."""

    async def get(self, user_id: str) -> NotificationTarget | None:
        """Get the push target for a user."""
        ...

    async def upsert(self, target: NotificationTarget) -> NotificationTarget:
        """Create or update the push target for a user."""
        ...
