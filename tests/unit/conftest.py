"""Shared fixtures for unit tests."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from domain.entities.notification import (
    Notification,
    NotificationDelivery,
    NotificationPreferences,
    NotificationType,
)


class FakeUnitOfWork:
    """Fake Unit of Work with all 4 repository mocks for unit testing.

    Repository ``create``/``upsert`` mocks echo their argument back, the
    way the SQLAlchemy repositories return the persisted entity.
    """

    def __init__(self) -> None:
        self.notifications = AsyncMock()
        self.deliveries = AsyncMock()
        self.preferences = AsyncMock()
        self.targets = AsyncMock()

        self.notifications.create.side_effect = _echo
        self.notifications.get_by_batch_key.return_value = []
        self.notifications.get_inbox.return_value = []
        self.notifications.get_unread_count.return_value = 0
        self.deliveries.create.side_effect = _echo
        self.deliveries.list_for_notification.return_value = []
        self.preferences.get_preferences.side_effect = _default_preferences
        self.preferences.upsert_preferences.side_effect = _echo
        self.targets.get.return_value = None
        self.targets.upsert.side_effect = _echo

        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass

    @property
    def created_deliveries(self) -> list[NotificationDelivery]:
        """Deliveries passed to ``deliveries.create``, in call order."""
        return [c.args[0] for c in self.deliveries.create.call_args_list]


async def _echo(entity: Any) -> Any:
    return entity


async def _default_preferences(
    user_id: str, tenant_id: str | None = None
) -> NotificationPreferences:
    return NotificationPreferences(user_id=user_id, tenant_id=tenant_id)


def _build_notification(**overrides: Any) -> Notification:
    values: dict[str, Any] = {
        "recipient_user_id": "user-1",
        "type": NotificationType.MEMBER_JOINED,
        "title": "Hello",
        "body": "World",
        "tenant_id": "tenant-1",
    }
    values.update(overrides)
    return Notification(**values)


@pytest.fixture
def make_notification() -> Callable[..., Notification]:
    """Factory for notifications with sensible defaults."""
    return _build_notification


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> str:
    """A random user ID."""
    return str(uuid4())


@pytest.fixture
def tenant_id() -> str:
    """A random tenant ID."""
    return str(uuid4())


@pytest.fixture
def actor_id() -> str:
    """A random actor ID (distinct from user_id)."""
    return str(uuid4())

