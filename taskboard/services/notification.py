"""
Task change notifications.

Bridges the event bus to websocket subscribers. Each open project view
holds one websocket and announces interest with
`{"type": "SUBSCRIBE", "projectId": ...}`; every task event for that
project is then pushed as

    {"type": "TASK_UPDATED" | "TASK_DELETED", "projectId", "taskId", "data"?}
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Protocol

from taskboard.core.events import TASK_DELETED, TASK_UPDATED, Event
from taskboard.services.base import Service

logger = logging.getLogger(__name__)


# Wire message types
SUBSCRIBE = "SUBSCRIBE"
SUBSCRIBED = "SUBSCRIBED"
MSG_TASK_UPDATED = "TASK_UPDATED"
MSG_TASK_DELETED = "TASK_DELETED"

EVENT_MESSAGE_TYPES = {
    TASK_UPDATED: MSG_TASK_UPDATED,
    TASK_DELETED: MSG_TASK_DELETED,
}


class Subscriber(Protocol):
    """What the hub needs from a connection (a Starlette WebSocket fits)."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


def event_to_message(event: Event) -> dict[str, Any] | None:
    """Wire message for a task event, or None for other event types."""
    message_type = EVENT_MESSAGE_TYPES.get(event.event_type)
    if message_type is None:
        return None

    message: dict[str, Any] = {
        "type": message_type,
        "projectId": event.project_id,
        "taskId": event.payload.get("task_id"),
    }
    if event.payload.get("data") is not None:
        message["data"] = event.payload["data"]
    return message


class TaskNotifier(Service):
    """
    Fan task events out to the websockets subscribed to their project.

    A subscriber whose send fails is dropped; its client is expected to
    reconnect and subscribe again.
    """

    @property
    def service_id(self) -> str:
        return "task_notifier"

    @property
    def subscribes_to(self) -> list[str]:
        return ["task.*"]

    def __init__(self):
        self._subscribers: dict[str, set[Subscriber]] = defaultdict(set)

    def subscribe(self, project_id: str, connection: Subscriber) -> None:
        self._subscribers[project_id].add(connection)
        logger.debug("Subscribed connection to project %s", project_id)

    def unsubscribe(self, connection: Subscriber) -> None:
        """Remove a connection from every project it listens to."""
        for project_id in list(self._subscribers):
            self._subscribers[project_id].discard(connection)
            if not self._subscribers[project_id]:
                del self._subscribers[project_id]

    def subscriber_count(self, project_id: str) -> int:
        return len(self._subscribers.get(project_id, ()))

    async def handle(self, event: Event) -> None:
        message = event_to_message(event)
        if message is None:
            return

        for connection in list(self._subscribers.get(event.project_id, ())):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning("Dropping subscriber of project %s: %s", event.project_id, e)
                self.unsubscribe(connection)

    async def shutdown(self) -> None:
        """Close every subscriber connection."""
        connections = {c for subs in self._subscribers.values() for c in subs}
        self._subscribers.clear()
        for connection in connections:
            try:
                await connection.close(code=1001)
            except Exception as e:
                logger.debug("Error closing subscriber: %s", e)
