"""Server-Sent Events framing for the notification stream."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

import orjson
import structlog

from domain.services.notification_stream import NotificationStream, StreamEvent

logger = structlog.get_logger()

# Events buffered per connection before new ones are dropped
QUEUE_SIZE = 100


def format_event(event: StreamEvent) -> str:
    data = orjson.dumps(event.to_dict()).decode()
    return f"event: {event.type.value}\ndata: {data}\n\n"


async def sse_events(
    stream: NotificationStream,
    user_id: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float = 15.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for one client connection.

    The subscription lives exactly as long as the generator: it is created
    on first iteration and removed when the client disconnects or the
    generator is closed.
    """
    queue: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=QUEUE_SIZE)
    unsubscribe = stream.subscribe(user_id, queue.put_nowait)
    logger.info("sse_connected", user_id=user_id)

    try:
        yield ": connected\n\n"
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_event(event)
    finally:
        unsubscribe()
        logger.info("sse_disconnected", user_id=user_id)
