"""Event manager for Server-Sent Events (SSE)."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


class EventType(str, Enum):
    """Types of events that can be emitted."""

    AUTOPILOT_STARTED = "autopilot_started"
    AUTOPILOT_STOPPED = "autopilot_stopped"
    ACTIVITY = "activity"
    JOB_COMPLETED = "job_completed"
    HEARTBEAT = "heartbeat"


@dataclass
class Event:
    """An event to be sent via SSE."""

    event_type: EventType
    data: dict[str, Any]

    def to_sse(self) -> str:
        """Convert to SSE format."""
        return f"event: {self.event_type.value}\ndata: {json.dumps(self.data, default=str)}\n\n"


@dataclass
class Subscriber:
    """A subscriber to the event stream."""

    id: str
    queue: asyncio.Queue[Event]
    event_types: frozenset[EventType] | None = None  # None means every type

    @classmethod
    def create(cls, event_types: frozenset[EventType] | None = None) -> Subscriber:
        """Create a new subscriber."""
        return cls(id=str(uuid4()), queue=asyncio.Queue(), event_types=event_types)

    def wants(self, event: Event) -> bool:
        return (
            self.event_types is None
            or event.event_type == EventType.HEARTBEAT
            or event.event_type in self.event_types
        )


@dataclass
class EventManager:
    """Manager for SSE events."""

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    _heartbeat_interval: int = 30  # seconds

    def subscribe(self, event_types: frozenset[EventType] | None = None) -> Subscriber:
        """Subscribe a client to events.

        Args:
            event_types: Optional set of event types to receive. None means all.

        Returns:
            Subscriber instance for receiving events.
        """
        subscriber = Subscriber.create(event_types)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Unsubscribe a client from events.

        Args:
            subscriber_id: ID of the subscriber to remove.
        """
        self._subscribers.pop(subscriber_id, None)

    async def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers.

        Args:
            event: Event to emit.
        """
        for subscriber in list(self._subscribers.values()):
            if subscriber.wants(event):
                await subscriber.queue.put(event)

    def emit_sync(self, event: Event) -> None:
        """Emit an event synchronously (for use in non-async contexts).

        Args:
            event: Event to emit.
        """
        for subscriber in list(self._subscribers.values()):
            if subscriber.wants(event):
                subscriber.queue.put_nowait(event)

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    # Convenience methods for emitting specific event types

    def emit_autopilot_started(self, config: dict[str, Any]) -> None:
        """Emit an autopilot_started event carrying the effective config."""
        self.emit_sync(Event(event_type=EventType.AUTOPILOT_STARTED, data={"config": config}))

    def emit_autopilot_stopped(self, reason: str = "manual") -> None:
        """Emit an autopilot_stopped event."""
        self.emit_sync(Event(event_type=EventType.AUTOPILOT_STOPPED, data={"reason": reason}))

    def emit_activity(self, activity: dict[str, str]) -> None:
        """Emit an activity event (stage, detail and label)."""
        self.emit_sync(Event(event_type=EventType.ACTIVITY, data=activity))

    def emit_job_completed(self, result: dict[str, Any]) -> None:
        """Emit a job_completed event with the job result."""
        self.emit_sync(Event(event_type=EventType.JOB_COMPLETED, data=result))

    def create_heartbeat_event(self) -> Event:
        """Create a heartbeat event."""
        return Event(
            event_type=EventType.HEARTBEAT,
            data={"timestamp": datetime.now(UTC).isoformat()},
        )
