"""Server-Sent Events (SSE) endpoint."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from blogpilot.api.dependencies import EventManagerDep
from blogpilot.api.events import EventType

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

router = APIRouter(prefix="/events", tags=["events"])


def parse_event_types(types: str | None) -> frozenset[EventType] | None:
    """Parse a comma-separated event type filter.

    Raises:
        HTTPException: 422 if a type is unknown.
    """
    if not types:
        return None
    try:
        return frozenset(EventType(t.strip()) for t in types.split(",") if t.strip())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown event type: {e}",
        ) from e


@router.get("/stream")
async def event_stream(
    event_manager: EventManagerDep,
    types: str | None = Query(default=None, description="Comma-separated event types"),
) -> StreamingResponse:
    """Subscribe to Server-Sent Events stream.

    Events are filtered by type if ``types`` is given, otherwise all events
    are sent. A heartbeat is sent every 30 seconds to keep the connection
    alive.
    """
    subscriber = event_manager.subscribe(parse_event_types(types))

    async def generate() -> AsyncGenerator[str, None]:
        try:
            while True:
                try:
                    # Wait for event with timeout for heartbeat
                    event = await asyncio.wait_for(
                        subscriber.queue.get(),
                        timeout=event_manager._heartbeat_interval,
                    )
                    yield event.to_sse()
                except TimeoutError:
                    yield event_manager.create_heartbeat_event().to_sse()
        finally:
            event_manager.unsubscribe(subscriber.id)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
