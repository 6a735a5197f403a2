"""Keyed cache of list and detail views with coalesced fetching.

Each view lives under a ``QueryKey`` (view kind + scope). Concurrent fetches
of one key share a single task. A fetch that was suspended by a mutation
still completes for its awaiters, but its result is not written back, so it
cannot clobber an optimistic value.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pricing_desk.core.logging import get_logger
from pricing_desk.core.time import utcnow

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable
    from datetime import datetime

    Fetcher = Callable[[], Awaitable[Any]]

logger = get_logger(__name__)


class ViewKind(str, Enum):
    SALES_LIST = "sales-prs"
    ANALYST_AVAILABLE = "pa-available-prs"
    ANALYST_MINE = "pa-my-prs"
    DETAIL = "pr-details"


@dataclass(frozen=True)
class QueryKey:
    """Cache address: what kind of view, scoped to which user or request id."""

    kind: ViewKind
    scope: str

    @classmethod
    def sales_list(cls, user_id: str) -> QueryKey:
        return cls(ViewKind.SALES_LIST, user_id)

    @classmethod
    def analyst_available(cls, user_id: str) -> QueryKey:
        return cls(ViewKind.ANALYST_AVAILABLE, user_id)

    @classmethod
    def analyst_mine(cls, user_id: str) -> QueryKey:
        return cls(ViewKind.ANALYST_MINE, user_id)

    @classmethod
    def detail(cls, pr_id: str) -> QueryKey:
        return cls(ViewKind.DETAIL, pr_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.scope}"


@dataclass
class CacheEntry:
    data: Any = None
    has_data: bool = False
    stale: bool = True
    updated_at: datetime | None = None
    # Bumped on every local write or suspension; fetch results carrying an
    # older generation are dropped.
    generation: int = 0
    fetcher: Fetcher | None = None
    inflight: asyncio.Task[Any] | None = None
    subscribers: list[Callable[[QueryKey, Any], None]] = field(default_factory=list)


class QueryCache:
    """In-process store for list/detail views, addressed by ``QueryKey``."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._background: set[asyncio.Task[Any]] = set()

    def _entry(self, key: QueryKey) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry()
            self._entries[key] = entry
        return entry

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def peek(self, key: QueryKey) -> Any:
        """Current value for ``key`` or ``None``; never waits."""
        entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def has(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.has_data

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def subscribe(self, key: QueryKey, callback: Callable[[QueryKey, Any], None]) -> None:
        self._entry(key).subscribers.append(callback)

    def _store(self, key: QueryKey, entry: CacheEntry, data: Any, *, stale: bool) -> None:
        entry.data = data
        entry.has_data = True
        entry.stale = stale
        entry.updated_at = utcnow()
        for callback in list(entry.subscribers):
            callback(key, data)

    def set(self, key: QueryKey, data: Any) -> None:
        """Write a local value; any in-flight fetch for ``key`` is superseded."""
        entry = self._entry(key)
        entry.generation += 1
        self._store(key, entry, data, stale=entry.stale)

    def restore(self, key: QueryKey, data: Any, *, had_data: bool) -> None:
        """Put back a snapshot, including the 'nothing cached' state.

        Keys dropped since the snapshot was taken (``remove`` or ``clear``)
        stay dropped.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache.restore.skipped", extra={"key": str(key)})
            return
        entry.generation += 1
        if had_data:
            self._store(key, entry, data, stale=entry.stale)
            return
        entry.data = None
        entry.has_data = False
        for callback in list(entry.subscribers):
            callback(key, None)

    def remove(self, key: QueryKey) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None and entry.inflight is not None:
            entry.generation += 1

    def suspend(self, key: QueryKey) -> None:
        """Detach an in-flight fetch so its result is not written back."""
        entry = self._entries.get(key)
        if entry is None or entry.inflight is None:
            return
        entry.generation += 1
        entry.inflight = None
        logger.debug("cache.fetch.suspended", extra={"key": str(key)})

    async def fetch(self, key: QueryKey, fetcher: Fetcher | None = None) -> Any:
        """Load ``key`` through ``fetcher``, joining an in-flight load if any."""
        entry = self._entry(key)
        if fetcher is not None:
            entry.fetcher = fetcher
        if entry.inflight is not None:
            logger.debug("cache.fetch.coalesced", extra={"key": str(key)})
            return await asyncio.shield(entry.inflight)
        if entry.fetcher is None:
            msg = f"No fetcher registered for {key}"
            raise LookupError(msg)
        task = asyncio.create_task(self._run_fetch(key, entry, entry.fetcher, entry.generation))
        entry.inflight = task
        return await asyncio.shield(task)

    async def _run_fetch(
        self,
        key: QueryKey,
        entry: CacheEntry,
        fetcher: Fetcher,
        generation: int,
    ) -> Any:
        try:
            data = await fetcher()
        finally:
            if entry.inflight is asyncio.current_task():
                entry.inflight = None
        if entry.generation == generation and self._entries.get(key) is entry:
            self._store(key, entry, data, stale=False)
        else:
            logger.debug("cache.fetch.discarded", extra={"key": str(key)})
        return data

    def invalidate(self, keys: Iterable[QueryKey]) -> list[asyncio.Task[Any]]:
        """Mark keys stale and refetch those with a known fetcher in the background.

        A fetch already in flight may have read the server before the change
        that prompted the invalidation, so it is superseded rather than joined.
        """
        tasks: list[asyncio.Task[Any]] = []
        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            entry.stale = True
            if entry.fetcher is None:
                continue
            self.suspend(key)
            task = asyncio.create_task(self._background_fetch(key))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            tasks.append(task)
        return tasks

    def invalidate_kind(self, kind: ViewKind) -> list[asyncio.Task[Any]]:
        return self.invalidate([key for key in self._entries if key.kind is kind])

    async def _background_fetch(self, key: QueryKey) -> None:
        try:
            await self.fetch(key)
        except Exception as exc:
            # The stale value stays visible; the next poll or read retries.
            logger.warning(
                "cache.refetch_failed",
                extra={"key": str(key), "error": str(exc) or type(exc).__name__},
            )

    async def drain(self) -> None:
        """Wait for every background refetch scheduled so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def clear(self) -> None:
        for entry in self._entries.values():
            entry.generation += 1
        self._entries.clear()
