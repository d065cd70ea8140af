"""In-memory cache of resolved SharePoint resources."""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceCache:
    """Maps resolution keys to remote resource handles for one adapter.

    Keys are ``(kind, key)`` tuples where ``kind`` is ``"list"``,
    ``"folder"`` or ``"file"``. Entries never expire: callers that need an
    up-to-date answer pass ``fresh=True`` to :meth:`fetch`, which skips the
    lookup and overwrites the entry with the newly loaded value.

    The cache is not synchronized. Sharing one adapter between threads can
    return stale resources; SharePoint stays the only source of truth.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, Any] = {}

    def get(self, key: Hashable) -> Any | None:
        return self._entries.get(key)

    def put(self, key: Hashable, resource: Any) -> None:
        self._entries[key] = resource

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def fetch(self, key: Hashable, loader: Callable[[], T], fresh: bool = False) -> T:
        """Return the cached resource for ``key``, loading it on a miss.

        Args:
            key: Cache key.
            loader: Called to fetch the resource when the cache cannot answer.
                Exceptions propagate and leave the cache untouched.
            fresh: Bypass the cache and always call ``loader``.

        Returns:
            The cached or freshly loaded resource.
        """
        if not fresh and key in self._entries:
            logger.debug("Cache hit for %s", key)
            return self._entries[key]

        resource = loader()
        self._entries[key] = resource
        return resource

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
