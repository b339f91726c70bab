"""Services - resource handlers and the task notification hub."""

from taskboard.services.base import Service, ResourceService
from taskboard.services.users import UserService
from taskboard.services.projects import ProjectService
from taskboard.services.tasks import TaskService
from taskboard.services.notification import TaskNotifier

__all__ = [
    "Service",
    "ResourceService",
    "UserService",
    "ProjectService",
    "TaskService",
    "TaskNotifier",
]
