"""Periodic background refresh of cached list views."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pricing_desk.core.config import settings
from pricing_desk.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pricing_desk.services.query_cache import QueryCache, QueryKey

logger = get_logger(__name__)


class ListPoller:
    """Refetch registered keys every ``interval`` seconds.

    Polls go through ``QueryCache.fetch``, so a poll that overlaps a read or
    another poll of the same key joins the in-flight request.
    """

    def __init__(self, cache: QueryCache, *, interval: float | None = None) -> None:
        self.cache = cache
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self._fetchers: dict[QueryKey, Callable[[], Awaitable[Any]]] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def watch(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> None:
        self._fetchers[key] = fetcher

    def unwatch(self, key: QueryKey) -> None:
        self._fetchers.pop(key, None)

    def clear(self) -> None:
        self._fetchers.clear()

    async def poll_once(self) -> None:
        """Refresh every watched key concurrently; failures are logged per key."""
        keys = list(self._fetchers)
        results = await asyncio.gather(
            *(self.cache.fetch(key, self._fetchers[key]) for key in keys),
            return_exceptions=True,
        )
        for key, result in zip(keys, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(
                    "poller.refresh_failed",
                    extra={"key": str(key), "error": str(result) or type(result).__name__},
                )

    async def _loop(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "poller.started",
            extra={"interval": self.interval, "keys": len(self._fetchers)},
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("poller.stopped")
