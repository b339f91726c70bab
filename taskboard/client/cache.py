"""
Query cache for client-side reads.

Keys are tuples, most general segment first:

    ("projects",)            all projects
    ("project", project_id)  one project
    ("tasks", project_id)    one project's task list
    ("users",)               all users

`invalidate(("tasks",))` drops every task list; `invalidate(("tasks", pid))`
drops only that project's. The next `fetch()` for a dropped key reloads it.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

QueryKey = tuple[Any, ...]


class QueryCache:
    """In-memory query results, owned by whoever builds the client."""

    def __init__(self):
        self._entries: dict[QueryKey, Any] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return tuple(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def get(self, key: QueryKey, default: Any = None) -> Any:
        return self._entries.get(tuple(key), default)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[tuple(key)] = value

    def update(self, key: QueryKey, updater: Callable[[Any], Any]) -> bool:
        """
        Replace a cached value with `updater(value)`.

        Returns False (and does nothing) when the key is not cached.
        """
        key = tuple(key)
        if key not in self._entries:
            return False
        self._entries[key] = updater(self._entries[key])
        return True

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with `prefix`. Returns the count."""
        prefix = tuple(prefix)
        stale = [k for k in self._entries if k[:len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cached queries under %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    async def fetch(self, key: QueryKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Cached value for `key`, loading and storing it on a miss."""
        key = tuple(key)
        if key in self._entries:
            return self._entries[key]

        value = await loader()
        self._entries[key] = value
        return value
