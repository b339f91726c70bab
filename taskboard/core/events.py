"""
In-process event bus.

Resource handlers publish an event after every successful task mutation;
the notification hub subscribes to `task.*` and fans the events out to
websocket subscribers. Handlers never wait on anything beyond the bus.
"""

from __future__ import annotations

import fnmatch
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

# Type for event handlers
EventHandler = Callable[["Event"], Awaitable[None]]


# Event types
TASK_UPDATED = "task.updated"
TASK_DELETED = "task.deleted"


@dataclass
class Event:
    """
    Something that happened to a resource.

    Events are immutable records; handlers receive them after the
    mutation has been persisted.
    """

    event_type: str  # e.g. "task.updated"
    project_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    # Who caused it
    actor_id: str | None = None

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Subscription:
    """A subscription to events matching a pattern."""

    pattern: str  # e.g. "task.*"
    handler: EventHandler

    def matches(self, event: Event) -> bool:
        return fnmatch.fnmatch(event.event_type, self.pattern)


class EventBus:
    """
    In-memory event bus.

    Suitable for a single API process. Swap for Redis pub/sub when the API
    runs as several workers, otherwise websocket subscribers only hear
    about mutations handled by their own worker.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        """
        Subscribe to events matching a pattern.

        Returns:
            The subscription object (can be used to unsubscribe)
        """
        subscription = Subscription(pattern=pattern, handler=handler)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def publish(self, event: Event) -> None:
        """
        Deliver an event to every matching subscription.

        A failing handler is logged and skipped; it never fails the
        mutation that published the event.
        """
        for subscription in [s for s in self._subscriptions if s.matches(event)]:
            try:
                await subscription.handler(event)
            except Exception:
                logger.exception("Error in event handler for %s", event.event_type)


def task_updated(project_id: str, task_id: str, data: dict[str, Any] | None = None, actor_id: str | None = None) -> Event:
    """Create a task.updated event (also used for creation)."""
    return Event(
        event_type=TASK_UPDATED,
        project_id=project_id,
        actor_id=actor_id,
        payload={"task_id": task_id, "data": data},
    )


def task_deleted(project_id: str, task_id: str, actor_id: str | None = None) -> Event:
    """Create a task.deleted event."""
    return Event(
        event_type=TASK_DELETED,
        project_id=project_id,
        actor_id=actor_id,
        payload={"task_id": task_id},
    )
