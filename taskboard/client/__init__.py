"""
Client mutation layer.

- cache: QueryCache, tuple-keyed query results with prefix invalidation
- http: TaskboardClient / ApiError over the REST surface
- forms: drafts validated before submission
- mutations: invalidate-on-success wrappers, bulk task actions
- listener: TaskChangeListener for the task notification websocket
"""

from taskboard.client.cache import QueryCache
from taskboard.client.forms import ProjectDraft, SignupDraft, TaskDraft
from taskboard.client.http import ApiError, TaskboardClient
from taskboard.client.listener import TaskChangeListener
from taskboard.client.mutations import BulkResult, MutationResult, Mutations

__all__ = [
    "QueryCache",
    "ProjectDraft",
    "SignupDraft",
    "TaskDraft",
    "ApiError",
    "TaskboardClient",
    "TaskChangeListener",
    "BulkResult",
    "MutationResult",
    "Mutations",
]
