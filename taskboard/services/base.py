"""
Base classes for services.

Two kinds live here:
- `Service`: event-driven components subscribed to the event bus
  (the websocket notification hub is one)
- `ResourceService`: the per-entity handlers the HTTP routes call
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from taskboard.config import Settings, get_settings
from taskboard.core.errors import NotFound
from taskboard.core.events import Event, EventBus, Subscription
from taskboard.core.models import Project, Task, User
from taskboard.storage.base import Collections, StorageProvider


class Service(ABC):
    """
    Base class for event-driven services.

    Services are components that:
    1. Subscribe to specific event types
    2. Process those events
    """

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Unique identifier for this service."""
        pass

    @property
    @abstractmethod
    def subscribes_to(self) -> list[str]:
        """
        List of event patterns this service handles.

        Supports wildcards like "task.*".
        """
        pass

    @abstractmethod
    async def handle(self, event: Event) -> None:
        """Handle one matching event."""
        pass

    def register(self, bus: EventBus) -> list[Subscription]:
        """Subscribe `handle` to every pattern in `subscribes_to`."""
        return [bus.subscribe(pattern, self.handle) for pattern in self.subscribes_to]

    async def shutdown(self) -> None:
        """
        Clean up resources when the service is being shut down.

        Override this to release any resources.
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.service_id})>"


class ResourceService:
    """
    Shared plumbing for the User/Project/Task handlers.

    Every public method follows the same order: authorize → validate →
    persist → shape. Record loaders raise NotFound so callers can stay
    linear.
    """

    def __init__(
        self,
        storage: StorageProvider,
        bus: EventBus | None = None,
        settings: Settings | None = None,
    ):
        self.storage = storage
        self.bus = bus or EventBus()
        self.settings = settings or get_settings()

    @property
    def db(self):
        return self.storage.metadata

    # -------------------------------------------------------------------------
    # Loaders
    # -------------------------------------------------------------------------

    async def find_user(self, user_id: str) -> User | None:
        record = await self.db.get(Collections.USERS, user_id)
        return User.from_record(record) if record else None

    async def load_user(self, user_id: str) -> User:
        user = await self.find_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def find_project(self, project_id: str) -> Project | None:
        record = await self.db.get(Collections.PROJECTS, project_id)
        return Project.from_record(record) if record else None

    async def load_project(self, project_id: str) -> Project:
        project = await self.find_project(project_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    async def find_task(self, task_id: str) -> Task | None:
        record = await self.db.get(Collections.TASKS, task_id)
        return Task.from_record(record) if record else None

    async def load_task(self, task_id: str) -> Task:
        task = await self.find_task(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    async def users_by_id(self, user_ids: list[str]) -> dict[str, User]:
        """Load several users; ids that do not resolve are left out."""
        found: dict[str, User] = {}
        for user_id in dict.fromkeys(user_ids):
            user = await self.find_user(user_id)
            if user is not None:
                found[user_id] = user
        return found

    # -------------------------------------------------------------------------
    # Shaping
    # -------------------------------------------------------------------------

    @staticmethod
    def dump(model: Any) -> dict[str, Any]:
        """Wire shape: camelCase, JSON-safe."""
        return model.model_dump(mode="json", by_alias=True)
