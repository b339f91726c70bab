"""
Storage abstractions.

Integration Points:
- MetadataStorage → PostgreSQL (users, projects, project_members, tasks)
"""

from taskboard.storage.base import (
    MetadataStorage,
    StorageProvider,
    Collections,
)
from taskboard.storage.local import InMemoryMetadataStorage, create_local_storage

__all__ = [
    "MetadataStorage",
    "StorageProvider",
    "Collections",
    "InMemoryMetadataStorage",
    "create_local_storage",
]
