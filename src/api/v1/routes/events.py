"""Application event emission routes.

Lets other services of the product raise catalogue events over HTTP.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_event_bus
from api.v1.schemas.event import EmitEventRequest, EmitEventResponse
from core.rate_limit import limiter
from domain.entities.events import parse_event
from domain.services.event_bus import EventBus

logger = structlog.get_logger()

router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=EmitEventResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Emit an application event",
    responses={
        400: {"description": "Unknown event name"},
        422: {"description": "Payload does not match the event"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def emit_event(
    request: Request,
    body: EmitEventRequest,
    user: CurrentUser,
    bus: EventBus = Depends(get_event_bus),
) -> EmitEventResponse:
    """Validate the payload against the catalogue and dispatch it."""
    event = parse_event(body.name, body.payload)
    listeners = bus.listener_count(type(event))

    logger.info("event_emitted", event_name=event.name, emitted_by=user.id)
    await bus.emit(event)

    return EmitEventResponse(name=event.name, listeners=listeners)
