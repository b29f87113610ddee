"""
Stale-while-revalidate cache for collection pages.

Entries are keyed by the full :class:`QueryKey`. At most one load per key is
in flight: callers asking for a key that is already loading share that load,
unless they force a fresh one (revalidation), which supersedes it.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..backends.base import PageResponse
from ..core.utils import utc_now
from .schemas import QueryKey

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[PageResponse]]


@dataclass
class CacheEntry:
    response: PageResponse
    fetched_at: datetime = field(default_factory=utc_now)


class QueryCache:
    """Bounded LRU of successful page loads with a per-key in-flight guard."""

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[QueryKey, CacheEntry] = OrderedDict()
        self._inflight: dict[QueryKey, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey) -> PageResponse | None:
        """Last successful response for ``key``, if any."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry.response

    def entry(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(key)

    def is_loading(self, key: QueryKey) -> bool:
        return key in self._inflight

    def set(self, key: QueryKey, response: PageResponse) -> None:
        self._entries[key] = CacheEntry(response)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached page", extra={"collection": evicted.collection})

    async def fetch(
        self, key: QueryKey, loader: Loader, force: bool = False
    ) -> PageResponse:
        """
        Load ``key`` through ``loader``, sharing an in-flight load when possible.

        Args:
            key: Parameters of the page
            loader: Coroutine factory performing the backend call
            force: Start a new load even if one is in flight

        Returns:
            The loaded page

        Raises:
            Whatever ``loader`` raises; failed loads are never stored
        """
        task = self._inflight.get(key)
        if task is None or force:
            task = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        # Cancelling one waiter must not cancel a load others share
        return await asyncio.shield(task)

    async def _load(self, key: QueryKey, loader: Loader) -> PageResponse:
        response = await loader()
        if self._inflight.get(key) is asyncio.current_task():
            self.set(key, response)
        else:
            logger.debug(
                "Superseded load not cached", extra={"collection": key.collection}
            )
        return response

    def _forget(self, key: QueryKey, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome retrieved; waiters have already seen it
        if not task.cancelled():
            task.exception()

    def invalidate(self, collection: str | None = None) -> int:
        """
        Drop stored pages so the next read goes to the backend.

        Loads already in flight for the dropped collection are detached and
        will not be stored when they finish.

        Args:
            collection: Only drop this collection's pages; everything when None

        Returns:
            Number of entries dropped
        """
        doomed = [
            key
            for key in self._entries
            if collection is None or key.collection == collection
        ]
        for key in doomed:
            del self._entries[key]
        for key in [
            key
            for key in self._inflight
            if collection is None or key.collection == collection
        ]:
            del self._inflight[key]
        return len(doomed)

    def clear(self) -> None:
        self.invalidate()
