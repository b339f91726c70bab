"""
Task change listener - keeps one project's cached task list fresh.

One listener per open project view:

    listener = TaskChangeListener(project_id, cache, token=access_token)
    listener.start()
    ...
    await listener.stop()   # view closed

On connect it subscribes to the project. TASK_UPDATED drops the cached
task list so the next read refetches; TASK_DELETED removes the task from
the cached list in place.

Failed connection attempts back off exponentially up to `max_delay`
and never give up. When an established connection drops, the listener
waits `initial_delay` and starts over with a fresh backoff.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable
from urllib.parse import urlencode

import websockets
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_never,
    wait_exponential,
)
from websockets.exceptions import WebSocketException

from taskboard.client.cache import QueryCache
from taskboard.config import get_settings
from taskboard.services.notification import (
    MSG_TASK_DELETED,
    MSG_TASK_UPDATED,
    SUBSCRIBE,
    SUBSCRIBED,
)

logger = logging.getLogger(__name__)

RETRYABLE = (OSError, WebSocketException, asyncio.TimeoutError)


class TaskChangeListener:
    """Websocket subscriber that reconciles a QueryCache with task events."""

    def __init__(
        self,
        project_id: str,
        cache: QueryCache,
        url: str | None = None,
        token: str | None = None,
        initial_delay: float | None = None,
        max_delay: float | None = None,
        connect: Callable[[str], Awaitable[Any]] = websockets.connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        self.project_id = project_id
        self.cache = cache
        self.url = url or f"{settings.ws_url.rstrip('/')}/ws/tasks"
        self.token = token
        self.initial_delay = settings.reconnect_initial_delay if initial_delay is None else initial_delay
        self.max_delay = settings.reconnect_max_delay if max_delay is None else max_delay

        self._connect = connect
        self._sleep = sleep
        self._ws: Any = None
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def tasks_key(self) -> tuple[str, str]:
        return ("tasks", self.project_id)

    @property
    def endpoint(self) -> str:
        if not self.token:
            return self.url
        return f"{self.url}?{urlencode({'token': self.token})}"

    @property
    def connected(self) -> bool:
        return self._ws is not None

    # =========================================================================
    # Messages
    # =========================================================================

    def handle_message(self, raw: str | bytes) -> None:
        """Apply one server message to the cache. Bad messages are logged and skipped."""
        try:
            message = json.loads(raw)
        except ValueError:
            logger.error("Error processing task notification: %r", raw)
            return

        if not isinstance(message, dict):
            return

        message_type = message.get("type")
        if message.get("projectId") != self.project_id:
            return

        if message_type == MSG_TASK_UPDATED:
            self.cache.invalidate(self.tasks_key)
        elif message_type == MSG_TASK_DELETED:
            task_id = message.get("taskId")
            self.cache.update(
                self.tasks_key,
                lambda tasks: [t for t in tasks if t.get("id") != task_id] if tasks else tasks,
            )
        elif message_type == SUBSCRIBED:
            logger.debug("Subscribed to task changes for %s", self.project_id)

    # =========================================================================
    # Connection
    # =========================================================================

    async def _open(self) -> Any:
        """Connect, retrying with capped exponential backoff until it works."""
        retrying = AsyncRetrying(
            wait=wait_exponential(multiplier=self.initial_delay, max=self.max_delay),
            stop=stop_never,
            retry=retry_if_exception_type(RETRYABLE),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._connect(self.endpoint)

    async def _session(self, ws: Any) -> None:
        await ws.send(json.dumps({"type": SUBSCRIBE, "projectId": self.project_id}))
        async for raw in ws:
            self.handle_message(raw)

    async def run(self) -> None:
        """Connect/subscribe/listen until `stop()` is called."""
        while not self._stopped:
            self._ws = await self._open()
            logger.info("Task notifications connected for project %s", self.project_id)
            try:
                await self._session(self._ws)
            except RETRYABLE as e:
                logger.warning("Task notification connection lost: %s", e)
            except Exception:
                logger.exception("Task notification session failed for project %s", self.project_id)
            finally:
                ws, self._ws = self._ws, None
                await _close_quietly(ws)

            if self._stopped:
                break
            logger.info("Task notifications disconnected, reconnecting in %ss", self.initial_delay)
            await self._sleep(self.initial_delay)

    def start(self) -> asyncio.Task:
        """Run the listener in the background."""
        if self._task is None or self._task.done():
            self._stopped = False
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel any pending reconnect and close the connection."""
        self._stopped = True
        ws, self._ws = self._ws, None
        await _close_quietly(ws)

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


async def _close_quietly(ws: Any) -> None:
    if ws is None:
        return
    try:
        await ws.close()
    except RETRYABLE as e:
        logger.debug("Error closing task notification socket: %s", e)
