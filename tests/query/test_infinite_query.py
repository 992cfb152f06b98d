from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from orgdash.github.errors import RequestFailedError
from orgdash.query.client import QueryClient
from orgdash.query.infinite import InfiniteQuery, undersized_page_terminator
from orgdash.query.retry import RetryPolicy


@dataclass(frozen=True)
class Item:
    id: int


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class PagedSource:
    def __init__(self, pages: dict[int, list[Item]]) -> None:
        self.pages = pages
        self.requested: list[int] = []
        self.gate: asyncio.Event | None = None

    async def fetch(self, page: int) -> list[Item]:
        self.requested.append(page)
        if self.gate is not None:
            await self.gate.wait()
        return list(self.pages.get(page, []))


async def _no_sleep(_: float) -> None:
    return None


def _query(source: PagedSource, *, page_size: int = 2, clock: FakeClock | None = None) -> InfiniteQuery[Item]:
    client = QueryClient(
        stale_time=300,
        gc_time=600,
        clock=clock or FakeClock(),
        sleeper=_no_sleep,
        retry_policy=RetryPolicy(max_retries=2, backoff_base_seconds=0.0, backoff_max_seconds=0.0),
    )
    return InfiniteQuery(
        client,
        ("orgRepos", "acme"),
        source.fetch,
        get_next_page_param=undersized_page_terminator(page_size),
        item_id=lambda item: item.id,
    )


@pytest.mark.asyncio
async def test_full_page_means_next_page_available_and_short_page_ends() -> None:
    source = PagedSource({1: [Item(1), Item(2)], 2: [Item(3)]})
    query = _query(source)

    await query.fetch()
    assert query.has_next_page

    await query.fetch_next_page()
    assert not query.has_next_page

    await query.fetch_next_page()
    assert source.requested == [1, 2]
    assert [item.id for item in query.items] == [1, 2, 3]
    assert query.data.page_params == [1, 2]


@pytest.mark.asyncio
async def test_empty_page_ends_pagination() -> None:
    source = PagedSource({1: [Item(1), Item(2)], 2: []})
    query = _query(source)

    await query.fetch()
    await query.fetch_next_page()

    assert not query.has_next_page
    assert [item.id for item in query.items] == [1, 2]


@pytest.mark.asyncio
async def test_empty_first_page_has_no_next_page() -> None:
    source = PagedSource({})
    query = _query(source)

    await query.fetch()

    assert query.items == []
    assert not query.has_next_page


@pytest.mark.asyncio
async def test_next_page_is_not_requested_while_a_page_is_in_flight() -> None:
    source = PagedSource({1: [Item(1), Item(2)], 2: [Item(3), Item(4)], 3: [Item(5)]})
    query = _query(source)
    await query.fetch()

    source.gate = asyncio.Event()
    first = asyncio.create_task(query.fetch_next_page())
    await asyncio.sleep(0)
    assert query.is_fetching_next_page
    second = asyncio.create_task(query.fetch_next_page())
    await asyncio.sleep(0)
    source.gate.set()
    await asyncio.gather(first, second)

    assert source.requested == [1, 2]
    assert [item.id for item in query.items] == [1, 2, 3, 4]
    assert not query.is_fetching_next_page


@pytest.mark.asyncio
async def test_duplicate_ids_across_pages_keep_first_occurrence() -> None:
    source = PagedSource({1: [Item(1), Item(2)], 2: [Item(2), Item(3)], 3: []})
    query = _query(source)

    await query.fetch()
    await query.fetch_next_page()

    assert [item.id for item in query.items] == [1, 2, 3]


@pytest.mark.asyncio
async def test_stale_refetch_reloads_loaded_pages_in_order() -> None:
    clock = FakeClock()
    source = PagedSource({1: [Item(1), Item(2)], 2: [Item(3), Item(4)], 3: [Item(5)]})
    query = _query(source, clock=clock)

    await query.fetch()
    await query.fetch_next_page()
    source.requested.clear()

    await query.fetch()
    assert source.requested == []

    clock.now += 300
    await query.fetch()

    assert source.requested == [1, 2]
    assert query.data.page_params == [1, 2]


@pytest.mark.asyncio
async def test_failed_next_page_keeps_accumulated_pages() -> None:
    source = PagedSource({1: [Item(1), Item(2)]})
    query = _query(source)
    await query.fetch()

    async def failing(page: int) -> list[Item]:
        raise RequestFailedError("Server Error", 500)

    query._fetch_page = failing

    with pytest.raises(RequestFailedError):
        await query.fetch_next_page()

    assert [item.id for item in query.items] == [1, 2]
    assert query.entry.is_error
    assert query.has_next_page
