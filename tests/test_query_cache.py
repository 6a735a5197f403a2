# ruff: noqa: INP001
"""Query cache coalescing, suspension and invalidation."""

from __future__ import annotations

import asyncio

import pytest

from pricing_desk.services.query_cache import QueryCache, QueryKey, ViewKind

KEY = QueryKey.sales_list("se-1")


class _GatedFetcher:
    """Fetcher whose calls block until released."""

    def __init__(self, *results: object) -> None:
        self.results = list(results)
        self.calls = 0
        self.gate = asyncio.Event()

    async def __call__(self) -> object:
        self.calls += 1
        await self.gate.wait()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_key_text_and_kinds() -> None:
    assert str(QueryKey.detail("pr-1")) == "pr-details:pr-1"
    assert QueryKey.analyst_mine("pa-1").kind is ViewKind.ANALYST_MINE
    assert QueryKey.sales_list("a") == QueryKey(ViewKind.SALES_LIST, "a")


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_call() -> None:
    cache = QueryCache()
    fetcher = _GatedFetcher(["pr-1"])

    first = asyncio.create_task(cache.fetch(KEY, fetcher))
    second = asyncio.create_task(cache.fetch(KEY, fetcher))
    await asyncio.sleep(0)
    fetcher.gate.set()

    assert await first == ["pr-1"]
    assert await second == ["pr-1"]
    assert fetcher.calls == 1
    assert cache.peek(KEY) == ["pr-1"]
    assert not cache.is_stale(KEY)


@pytest.mark.asyncio
async def test_suspended_fetch_does_not_overwrite_local_value() -> None:
    cache = QueryCache()
    fetcher = _GatedFetcher(["server"])
    pending = asyncio.create_task(cache.fetch(KEY, fetcher))
    await asyncio.sleep(0)

    cache.suspend(KEY)
    cache.set(KEY, ["optimistic"])
    fetcher.gate.set()

    assert await pending == ["server"]
    assert cache.peek(KEY) == ["optimistic"]


@pytest.mark.asyncio
async def test_fetch_failure_propagates_and_keeps_previous_value() -> None:
    cache = QueryCache()
    cache.set(KEY, ["old"])
    fetcher = _GatedFetcher(RuntimeError("boom"))
    fetcher.gate.set()

    with pytest.raises(RuntimeError, match="boom"):
        await cache.fetch(KEY, fetcher)
    assert cache.peek(KEY) == ["old"]

    # the failed task no longer counts as in flight
    retry = _GatedFetcher(["new"])
    retry.gate.set()
    assert await cache.fetch(KEY, retry) == ["new"]


@pytest.mark.asyncio
async def test_fetch_without_fetcher_raises_lookup_error() -> None:
    with pytest.raises(LookupError):
        await QueryCache().fetch(KEY)


@pytest.mark.asyncio
async def test_invalidate_refetches_in_background() -> None:
    cache = QueryCache()
    fetcher = _GatedFetcher(["v1"], ["v2"])
    fetcher.gate.set()
    await cache.fetch(KEY, fetcher)
    seen: list[object] = []
    cache.subscribe(KEY, lambda key, data: seen.append(data))

    tasks = cache.invalidate([KEY, QueryKey.detail("never-fetched")])
    assert len(tasks) == 1
    assert cache.is_stale(KEY)
    await cache.drain()

    assert cache.peek(KEY) == ["v2"]
    assert not cache.is_stale(KEY)
    assert seen == [["v2"]]


@pytest.mark.asyncio
async def test_background_refetch_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    cache = QueryCache()
    fetcher = _GatedFetcher(["v1"], RuntimeError("api down"))
    fetcher.gate.set()
    await cache.fetch(KEY, fetcher)

    cache.invalidate_kind(ViewKind.SALES_LIST)
    await cache.drain()

    assert cache.peek(KEY) == ["v1"]
    assert any(record.getMessage() == "cache.refetch_failed" for record in caplog.records)


def test_restore_can_return_a_key_to_empty() -> None:
    cache = QueryCache()
    cache.set(KEY, ["x"])
    cache.restore(KEY, None, had_data=False)
    assert not cache.has(KEY)
    assert cache.peek(KEY) is None


@pytest.mark.asyncio
async def test_clear_discards_inflight_results() -> None:
    cache = QueryCache()
    fetcher = _GatedFetcher(["late"])
    pending = asyncio.create_task(cache.fetch(KEY, fetcher))
    await asyncio.sleep(0)

    cache.clear()
    fetcher.gate.set()
    await pending

    assert cache.keys() == []
    assert cache.peek(KEY) is None


def test_restore_does_not_recreate_a_cleared_key() -> None:
    cache = QueryCache()
    cache.set(KEY, ["x"])
    cache.clear()

    cache.restore(KEY, ["x"], had_data=True)

    assert cache.keys() == []
    assert not cache.has(KEY)


@pytest.mark.asyncio
async def test_invalidate_supersedes_inflight_fetch() -> None:
    cache = QueryCache()
    server = ["before-write"]
    gate = asyncio.Event()
    calls = 0

    async def fetcher() -> list[str]:
        nonlocal calls
        calls += 1
        snapshot = list(server)
        await gate.wait()
        return snapshot

    pending = asyncio.create_task(cache.fetch(KEY, fetcher))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert calls == 1

    server[:] = ["after-write"]
    cache.invalidate([KEY])
    gate.set()

    assert await pending == ["before-write"]
    await cache.drain()
    assert calls == 2
    assert cache.peek(KEY) == ["after-write"]
    assert not cache.is_stale(KEY)
