"""Notification domain entities and enumerations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

# Tenant id stored for notifications that are not scoped to a tenant
SYSTEM_TENANT = "system"


def _new_id() -> str:
    return str(uuid4())


class NotificationType(StrEnum):
    """Notification categories rendered by clients."""

    # Communication
    DIRECT_MESSAGE = "direct_message"
    MILESTONE = "milestone"
    KUDOS_SENT = "kudos_sent"

    # Tasks
    TODO_ASSIGNED = "todo_assigned"
    TODO_NUDGE = "todo_nudge"
    TODO_COMPLETED = "todo_completed"

    # Events
    EVENT_CREATED = "event_created"
    EVENT_REMINDER = "event_reminder"
    EVENT_CHANGED = "event_changed"

    # Alerts & limits
    ACHIEVEMENT = "achievement"
    LIMIT_ALERT = "limit_alert"
    SURVEY_CREATED = "survey_created"

    # System & membership
    MEMBER_JOINED = "member_joined"
    MEMBER_INVITED = "member_invited"
    SETTINGS_CHANGED = "settings_changed"

    # Provider smoke test
    TEST = "test"


class DeliveryChannel(StrEnum):
    """Mechanisms a notification can be delivered through."""

    IN_APP = "in_app"
    PUSH = "push"
    EMAIL = "email"


class DeliveryStatus(StrEnum):
    """Outcome of a single delivery attempt."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class Notification:
    """Domain entity for an inbox entry. Exactly one recipient per entry."""

    recipient_user_id: str
    type: NotificationType
    title: str
    body: str
    tenant_id: str | None = SYSTEM_TENANT
    actor_user_id: str | None = None
    deep_link: str | None = None
    data: dict[str, Any] | None = None
    batch_key: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.utcnow)
    read_at: datetime | None = None
    archived_at: datetime | None = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


@dataclass
class NotificationDelivery:
    """Append-only audit record for one channel delivery attempt."""

    notification_id: str
    channel: DeliveryChannel
    status: DeliveryStatus
    provider_message_id: str | None = None
    error: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class NotificationPreferences:
    """Per-user channel toggles, optionally scoped to a tenant.

    The defaults are what a user without a stored row receives.
    """

    user_id: str
    tenant_id: str | None = None
    in_app_enabled: bool = True
    push_enabled: bool = False
    email_enabled: bool = True
    marketing_email_enabled: bool = False
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class NotificationTarget:
    """Mapping between a user and their push provider identity."""

    user_id: str
    push_subscriber_id: str | None = None
    expo_push_token: str | None = None
    last_active_at: datetime | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
