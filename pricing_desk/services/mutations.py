"""Optimistic mutation coordinator.

A mutation is described by ``OptimisticUpdate`` commands, each a forward
function over one cached value. The coordinator:

1. suspends in-flight fetches for the touched keys,
2. snapshots their values and records the snapshot as the key's rollback
   target (a newer mutation replaces an older one's target),
3. applies every forward function synchronously to keys holding a value,
4. awaits the network call,
5. on failure restores the rollback targets and re-raises,
6. always marks the touched and extra keys stale and refetches them,
   except keys a newer mutation still holds.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pricing_desk.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from pricing_desk.services.query_cache import QueryCache, QueryKey

logger = get_logger(__name__)
T = TypeVar("T")


@dataclass(frozen=True)
class OptimisticUpdate:
    """Forward effect on one cache key; the inverse is the recorded snapshot."""

    key: QueryKey
    forward: Callable[[Any], Any]


@dataclass(frozen=True)
class _Snapshot:
    mutation_id: int
    data: Any
    had_data: bool


class MutationCoordinator:
    """Runs mutations against a ``QueryCache`` with rollback on failure."""

    def __init__(self, cache: QueryCache) -> None:
        self.cache = cache
        self._ids = itertools.count(1)
        self._rollback: dict[QueryKey, _Snapshot] = {}

    def rollback_target(self, key: QueryKey) -> Any:
        snapshot = self._rollback.get(key)
        return snapshot.data if snapshot is not None else None

    def apply(self, updates: Sequence[OptimisticUpdate]) -> int:
        """Steps 1-3: suspend, snapshot and apply forward effects synchronously.

        Forward values are computed before anything is written, so a forward
        that raises leaves the cache untouched. Keys holding no value yet are
        suspended and snapshotted but not written.
        """
        mutation_id = next(self._ids)
        planned = [
            (update.key, self.cache.has(update.key), self.cache.peek(update.key))
            for update in updates
        ]
        forwards = [
            update.forward(current) if had_data else None
            for update, (_, had_data, current) in zip(updates, planned, strict=True)
        ]
        for (key, had_data, current), new_value in zip(planned, forwards, strict=True):
            self.cache.suspend(key)
            self._rollback[key] = _Snapshot(
                mutation_id=mutation_id,
                data=current,
                had_data=had_data,
            )
            if had_data:
                self.cache.set(key, new_value)
        return mutation_id

    def revert(self, mutation_id: int, keys: Iterable[QueryKey]) -> None:
        """Restore the latest recorded snapshot for each key."""
        for key in keys:
            snapshot = self._rollback.get(key)
            if snapshot is None:
                continue
            self.cache.restore(key, snapshot.data, had_data=snapshot.had_data)
            logger.info(
                "cache.rollback",
                extra={
                    "key": str(key),
                    "mutation_id": mutation_id,
                    "snapshot_mutation_id": snapshot.mutation_id,
                },
            )

    def reset(self) -> None:
        """Forget every rollback target; pending mutations then settle without reverting."""
        self._rollback.clear()

    def _release(self, mutation_id: int, keys: Iterable[QueryKey]) -> None:
        for key in keys:
            snapshot = self._rollback.get(key)
            if snapshot is not None and snapshot.mutation_id == mutation_id:
                del self._rollback[key]

    async def run(
        self,
        updates: Sequence[OptimisticUpdate],
        call: Callable[[], Awaitable[T]],
        *,
        invalidate: Iterable[QueryKey] = (),
    ) -> T:
        """Apply ``updates``, await ``call`` and settle the cache either way."""
        touched = [update.key for update in updates]
        mutation_id = self.apply(updates)
        try:
            result = await call()
        except BaseException:
            self.revert(mutation_id, touched)
            raise
        finally:
            self._release(mutation_id, touched)
            # Keys still held by a newer mutation are refreshed when it settles.
            refetch = [
                key
                for key in dict.fromkeys([*touched, *invalidate])
                if key not in self._rollback
            ]
            self.cache.invalidate(refetch)
        return result
