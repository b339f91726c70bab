"""
Task notification websocket.

    ws://host/ws/tasks?token=<access token>

After the handshake the client sends `{"type": "SUBSCRIBE", "projectId": ...}`
for each project it displays and gets `{"type": "SUBSCRIBED", "projectId": ...}`
back. From then on TASK_UPDATED / TASK_DELETED messages for that project
arrive as tasks change.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from taskboard.auth.policies import resolve_session
from taskboard.services.notification import SUBSCRIBE, SUBSCRIBED

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


def _decode(frame: dict[str, Any]) -> Any:
    """JSON body of a text frame; None for binary frames and bad JSON."""
    text = frame.get("text")
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


@router.websocket("/ws/tasks")
async def task_notifications(websocket: WebSocket):
    principal = await resolve_session(websocket)
    if principal is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    notifier = websocket.app.state.notifier
    await websocket.accept()
    logger.debug("Notification socket opened for user %s", principal.id)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", status.WS_1000_NORMAL_CLOSURE))

            message = _decode(frame)
            if message is None:
                logger.debug("Ignoring malformed notification message")
                continue

            if not isinstance(message, dict) or message.get("type") != SUBSCRIBE:
                continue

            project_id = message.get("projectId")
            if not project_id or not isinstance(project_id, str):
                continue

            notifier.subscribe(project_id, websocket)
            await websocket.send_json({"type": SUBSCRIBED, "projectId": project_id})
    except WebSocketDisconnect:
        logger.debug("Notification socket closed for user %s", principal.id)
    finally:
        notifier.unsubscribe(websocket)
