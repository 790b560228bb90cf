"""Pydantic schemas for Notification API."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    """Single inbox entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str | None = None
    recipient_user_id: str
    actor_user_id: str | None = None
    type: str
    title: str
    body: str
    deep_link: str | None = None
    data: dict[str, Any] | None = None
    batch_key: str | None = None
    created_at: datetime
    read_at: datetime | None = None
    archived_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Paginated inbox response."""

    data: list[NotificationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UnreadCountResponse(BaseModel):
    """Unread notification count response."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Response for mark-all-read operation."""

    count: int  # Number of notifications marked


class DeliveryResponse(BaseModel):
    """One delivery attempt from the audit log."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    notification_id: str
    channel: str
    status: str
    provider_message_id: str | None = None
    error: str | None = None
    created_at: datetime


class DeliveryListResponse(BaseModel):
    data: list[DeliveryResponse]


class NotificationPreferenceResponse(BaseModel):
    """Resolved channel preferences."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    tenant_id: str | None = None
    in_app_enabled: bool
    push_enabled: bool
    email_enabled: bool
    marketing_email_enabled: bool


class NotificationPreferenceRequest(BaseModel):
    """Partial update of channel preferences. Omitted fields are unchanged."""

    tenant_id: str | None = Field(None, max_length=64)
    in_app_enabled: bool | None = None
    push_enabled: bool | None = None
    email_enabled: bool | None = None
    marketing_email_enabled: bool | None = None


class RegisterPushTokenRequest(BaseModel):
    """Device token registration."""

    token: str = Field(..., min_length=1, max_length=255)
    platform: Literal["ios", "android"]
    is_expo_push_token: bool = False


class RemovePushTokenRequest(BaseModel):
    platform: Literal["ios", "android"]


class PushTargetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    push_subscriber_id: str | None = None
    expo_push_token: str | None = None
    last_active_at: datetime | None = None


class ProviderTestResponse(BaseModel):
    """Outcome of a provider smoke test."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    configured: bool
    message_id: str | None = None
    error: str | None = None
