"""Notification API routes."""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse

from api.dependencies.auth import CurrentUser, StreamUser
from api.v1.dependencies import (
    NotificationComponents,
    get_components,
    get_notification_service,
)
from api.v1.schemas.notification import (
    DeliveryListResponse,
    DeliveryResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationPreferenceRequest,
    NotificationPreferenceResponse,
    NotificationResponse,
    ProviderTestResponse,
    PushTargetResponse,
    RegisterPushTokenRequest,
    RemovePushTokenRequest,
    UnreadCountResponse,
)
from api.v1.sse import sse_events
from core.rate_limit import limiter
from domain.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


# --- Inbox ---


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List inbox notifications",
    responses={
        200: {"description": "Non-archived notifications, newest first"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_notifications(
    request: Request,
    user: CurrentUser,
    tenant_id: str | None = Query(None, max_length=64, description="Tenant scope"),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """List the caller's inbox. Archived notifications are excluded."""
    notifications, unread_count, has_more = await service.get_inbox(
        user.id, tenant_id=tenant_id, limit=limit, offset=offset
    )
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        meta={"unread_count": unread_count, "has_more": has_more},
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_unread_count(
    request: Request,
    user: CurrentUser,
    tenant_id: str | None = Query(None, max_length=64),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    """Count notifications that are neither read nor archived."""
    count = await service.get_unread_count(user.id, tenant_id)
    return UnreadCountResponse(count=count)


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def mark_all_read(
    request: Request,
    user: CurrentUser,
    tenant_id: str | None = Query(None, max_length=64),
    service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    """Mark all of the caller's unread notifications as read."""
    count = await service.mark_all_as_read(user.id, tenant_id)
    return MarkAllReadResponse(count=count)


# --- Live stream ---


@router.get(
    "/stream",
    summary="Live inbox updates",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Server-Sent Events: new, read, archived, refresh",
            "content": {"text/event-stream": {}},
        },
    },
)
async def stream_notifications(
    request: Request,
    user: StreamUser,
    components: NotificationComponents = Depends(get_components),
) -> StreamingResponse:
    """Open a Server-Sent Events connection for the caller's inbox."""
    await components.notification_service().update_last_active(user.id)
    return StreamingResponse(
        sse_events(
            components.stream,
            user.id,
            request.is_disconnected,
            keepalive_seconds=components.stream_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# --- Preferences ---


@router.get(
    "/preferences",
    response_model=NotificationPreferenceResponse,
    summary="Get notification preferences",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_preferences(
    request: Request,
    user: CurrentUser,
    tenant_id: str | None = Query(None, max_length=64),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferenceResponse:
    """Get resolved preferences (tenant, then global, then defaults)."""
    prefs = await service.get_preferences(user.id, tenant_id)
    return NotificationPreferenceResponse.model_validate(prefs)


@router.put(
    "/preferences",
    response_model=NotificationPreferenceResponse,
    summary="Update notification preferences",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_preferences(
    request: Request,
    body: NotificationPreferenceRequest,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferenceResponse:
    """Update channel toggles for the caller."""
    prefs = await service.update_preferences(
        user.id,
        tenant_id=body.tenant_id,
        in_app_enabled=body.in_app_enabled,
        push_enabled=body.push_enabled,
        email_enabled=body.email_enabled,
        marketing_email_enabled=body.marketing_email_enabled,
    )
    return NotificationPreferenceResponse.model_validate(prefs)


# --- Push devices ---


@router.get(
    "/push-token",
    response_model=PushTargetResponse,
    summary="Get the caller's push identity",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_push_target(
    request: Request,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> PushTargetResponse:
    """Get the stored push mapping and last time a live client connected."""
    target = await service.get_push_target(user.id)
    return PushTargetResponse.model_validate(target)


@router.post(
    "/push-token",
    response_model=PushTargetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a push device token",
    responses={
        503: {"description": "No push provider configured"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def register_push_token(
    request: Request,
    body: RegisterPushTokenRequest,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> PushTargetResponse:
    """Register the caller's device with the push provider."""
    target = await service.register_push_token(
        user.id,
        token=body.token,
        platform=body.platform,
        is_expo_push_token=body.is_expo_push_token,
        email=user.email,
        display_name=user.display_name,
    )
    return PushTargetResponse.model_validate(target)


@router.delete(
    "/push-token",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a push device token",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_push_token(
    request: Request,
    body: RemovePushTokenRequest,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Remove the caller's device token for one platform."""
    await service.remove_push_token(user.id, body.platform)


@router.post(
    "/test",
    response_model=ProviderTestResponse,
    summary="Send a test notification through the push provider",
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def send_test_notification(
    request: Request,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> ProviderTestResponse:
    """Send a provider-side in-app notification to the caller."""
    result = await service.send_test_notification(
        user.id, email=user.email, display_name=user.display_name
    )
    return ProviderTestResponse.model_validate(result)


# --- Batches ---


@router.get(
    "/batches/{batch_key}",
    response_model=NotificationListResponse,
    summary="Get notifications sharing a batch key",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_batch(
    request: Request,
    batch_key: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """Get the caller's notifications grouped under one batch key."""
    notifications = await service.get_batch(batch_key, user.id)
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        meta={"count": len(notifications)},
    )


# --- Single notification ---


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    summary="Get a notification",
    responses={
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_notification(
    request: Request,
    notification_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    """Direct lookup. Archived notifications are included."""
    notification = await service.get_notification(notification_id, user.id)
    return NotificationResponse.model_validate(notification)


@router.get(
    "/{notification_id}/deliveries",
    response_model=DeliveryListResponse,
    summary="Get delivery attempts of a notification",
    responses={
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_deliveries(
    request: Request,
    notification_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> DeliveryListResponse:
    """List the delivery audit trail, oldest first."""
    deliveries = await service.get_deliveries(notification_id, user.id)
    return DeliveryListResponse(data=[DeliveryResponse.model_validate(d) for d in deliveries])


@router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark notification as read",
    responses={
        204: {"description": "Notification marked as read"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def mark_notification_read(
    request: Request,
    notification_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Mark a notification as read. Requires recipient ownership."""
    await service.mark_as_read(notification_id, user.id)


@router.patch(
    "/{notification_id}/archive",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Archive notification",
    responses={
        204: {"description": "Notification archived"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def archive_notification(
    request: Request,
    notification_id: str,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Archive a notification. Requires recipient ownership."""
    await service.archive(notification_id, user.id)
