"""Event Stream — server-sent events for every notification the bus publishes.

Invariants:
    - One queue and one bus subscription per connection; the subscription is
      removed when the stream ends, however it ends
    - A comment line is sent on connect and then on every idle keep-alive period
    - A connection buffers at most QUEUE_MAXSIZE events; when a stalled client's
      buffer is full, new events for it are dropped and logged
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from formulary.api.dependencies import get_runtime
from formulary.core.events import NotificationEvent
from formulary.runtime import Runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])

KEEPALIVE_SECONDS = 15.0
QUEUE_MAXSIZE = 100

# Keep proxies and browsers from buffering streamed events.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def sse_line(event: NotificationEvent) -> str:
    return f"event: {event.kind.value}\ndata: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


@router.get("")
async def stream_events(request: Request, runtime: Runtime = Depends(get_runtime)):
    queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=QUEUE_MAXSIZE)

    def enqueue(event: NotificationEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Event stream client is not keeping up, dropping {event.kind.value} event",
            )

    unsubscribe = runtime.bus.subscribe(enqueue)

    async def event_generator():
        try:
            yield ": connected\n\n"
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    if await request.is_disconnected():
                        return
                    yield ": keep-alive\n\n"
                    continue
                yield sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from event stream")
            raise
        finally:
            unsubscribe()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
