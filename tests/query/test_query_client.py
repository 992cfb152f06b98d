from __future__ import annotations

import asyncio

import pytest

from orgdash.github.errors import NotFoundError, RateLimitedError, RequestFailedError
from orgdash.query.cache import FetchStatus, QueryCache, QueryStatus
from orgdash.query.client import QueryClient
from orgdash.query.retry import RetryPolicy


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _client(clock: FakeClock, sleeper: RecordingSleeper | None = None) -> QueryClient:
    return QueryClient(
        stale_time=300,
        gc_time=600,
        clock=clock,
        sleeper=sleeper or RecordingSleeper(),
        retry_policy=RetryPolicy(max_retries=2, backoff_base_seconds=1.0, backoff_max_seconds=30.0),
    )


@pytest.mark.asyncio
async def test_fresh_cache_hit_skips_fetcher_until_stale_time_elapses() -> None:
    clock = FakeClock()
    client = _client(clock)
    calls: list[int] = []

    async def fetcher() -> list[str]:
        calls.append(1)
        return ["repo"]

    first = await client.fetch_query(("orgRepos", "acme"), fetcher)
    clock.advance(299)
    second = await client.fetch_query(("orgRepos", "acme"), fetcher)
    clock.advance(1)
    third = await client.fetch_query(("orgRepos", "acme"), fetcher)

    assert first == second == third == ["repo"]
    assert len(calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [NotFoundError("Not Found", 404), RateLimitedError("Forbidden", 403)])
async def test_definitive_errors_are_never_retried(error: Exception) -> None:
    clock = FakeClock()
    sleeper = RecordingSleeper()
    client = _client(clock, sleeper)
    calls: list[int] = []

    async def fetcher() -> None:
        calls.append(1)
        raise error

    with pytest.raises(type(error)):
        await client.fetch_query(("orgDetails", "acme"), fetcher)

    entry = client.get_entry(("orgDetails", "acme"))
    assert len(calls) == 1
    assert sleeper.delays == []
    assert entry is not None
    assert entry.status == QueryStatus.ERROR
    assert entry.error is error


@pytest.mark.asyncio
async def test_other_errors_retry_twice_before_surfacing() -> None:
    clock = FakeClock()
    sleeper = RecordingSleeper()
    client = _client(clock, sleeper)
    calls: list[int] = []

    async def fetcher() -> None:
        calls.append(1)
        raise RequestFailedError("Server Error", 500)

    with pytest.raises(RequestFailedError):
        await client.fetch_query(("orgDetails", "acme"), fetcher)

    assert len(calls) == 3
    assert sleeper.delays == [1.0, 2.0]
    assert client.get_entry(("orgDetails", "acme")).failure_count == 3


@pytest.mark.asyncio
async def test_transient_failure_recovers_within_retry_budget() -> None:
    clock = FakeClock()
    client = _client(clock)
    attempts: list[int] = []

    async def fetcher() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            raise RequestFailedError("Bad Gateway", 502)
        return "ok"

    result = await client.fetch_query(("orgDetails", "acme"), fetcher)

    entry = client.get_entry(("orgDetails", "acme"))
    assert result == "ok"
    assert len(attempts) == 2
    assert entry.status == QueryStatus.SUCCESS
    assert entry.failure_count == 0
    assert entry.error is None


@pytest.mark.asyncio
async def test_concurrent_requests_for_same_key_share_one_fetch() -> None:
    clock = FakeClock()
    client = _client(clock)
    release = asyncio.Event()
    calls: list[int] = []

    async def fetcher() -> str:
        calls.append(1)
        await release.wait()
        return "shared"

    first = asyncio.create_task(client.fetch_query(("orgDetails", "acme"), fetcher))
    second = asyncio.create_task(client.fetch_query(("orgDetails", "acme"), fetcher))
    await asyncio.sleep(0)
    release.set()

    assert await first == "shared"
    assert await second == "shared"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_refetch_keeps_previous_data_visible_until_resolved() -> None:
    clock = FakeClock()
    client = _client(clock)
    release = asyncio.Event()
    key = ("orgDetails", "acme")

    async def first_fetcher() -> str:
        return "v1"

    async def slow_fetcher() -> str:
        await release.wait()
        return "v2"

    await client.fetch_query(key, first_fetcher)
    task = asyncio.create_task(client.fetch_query(key, slow_fetcher, force=True))
    await asyncio.sleep(0)

    entry = client.get_entry(key)
    assert entry.status == QueryStatus.SUCCESS
    assert entry.fetch_status == FetchStatus.FETCHING
    assert entry.data == "v1"

    release.set()
    assert await task == "v2"
    assert entry.data == "v2"
    assert entry.fetch_status == FetchStatus.IDLE


@pytest.mark.asyncio
async def test_first_fetch_reports_loading_state() -> None:
    clock = FakeClock()
    client = _client(clock)
    release = asyncio.Event()
    key = ("orgDetails", "acme")

    async def fetcher() -> str:
        await release.wait()
        return "done"

    task = asyncio.create_task(client.fetch_query(key, fetcher))
    await asyncio.sleep(0)

    assert client.get_entry(key).is_loading
    release.set()
    await task
    assert client.get_entry(key).is_success


@pytest.mark.asyncio
async def test_invalidate_forces_network_on_next_fetch() -> None:
    clock = FakeClock()
    client = _client(clock)
    calls: list[int] = []

    async def fetcher() -> int:
        calls.append(1)
        return len(calls)

    await client.fetch_query(("orgRepos", "acme"), fetcher)
    assert client.invalidate(("orgRepos",)) == 1
    result = await client.fetch_query(("orgRepos", "acme"), fetcher)

    assert result == 2


def test_garbage_collection_evicts_inactive_unobserved_entries() -> None:
    clock = FakeClock()
    cache = QueryCache(gc_time=600, clock=clock)
    client = QueryClient(cache=cache, stale_time=300)

    client.set_query_data(("orgRepos", "old"), ["stale"])
    release = client.observe(("orgRepos", "pinned"))
    clock.advance(599)
    assert cache.collect_garbage() == []

    clock.advance(1)
    evicted = cache.collect_garbage()

    assert evicted == [("orgRepos", "old")]
    assert ("orgRepos", "pinned") in cache

    release()
    clock.advance(600)
    assert cache.collect_garbage() == [("orgRepos", "pinned")]


@pytest.mark.asyncio
async def test_evicted_entry_is_fully_refetched() -> None:
    clock = FakeClock()
    client = _client(clock)
    calls: list[int] = []

    async def fetcher() -> int:
        calls.append(1)
        return len(calls)

    await client.fetch_query(("orgDetails", "acme"), fetcher)
    clock.advance(601)
    result = await client.fetch_query(("orgDetails", "acme"), fetcher)

    assert result == 2
    assert len(calls) == 2
