"""Infinite (page-accumulating) queries on top of ``QueryClient``."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from orgdash.query.cache import QueryEntry, QueryKey
from orgdash.query.client import QueryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

GetNextPageParam = Callable[[list[T], list[list[T]], int], Optional[int]]


@dataclass(slots=True)
class InfiniteData(Generic[T]):
    """Pages in fetch order together with the page number each came from."""

    pages: list[list[T]] = field(default_factory=list)
    page_params: list[int] = field(default_factory=list)

    @property
    def last_page_param(self) -> Optional[int]:
        return self.page_params[-1] if self.page_params else None

    def flatten(self) -> list[T]:
        return [item for page in self.pages for item in page]


def undersized_page_terminator(page_size: int) -> GetNextPageParam:
    """Next page is ``last + 1`` unless the last page came back short.

    The API gives no total count, so a page with fewer than ``page_size``
    items (including an empty page) marks the end of the data.
    """

    def get_next_page_param(last_page: list[Any], all_pages: list[list[Any]], last_page_param: int) -> Optional[int]:
        if len(last_page) < page_size:
            return None
        return last_page_param + 1

    return get_next_page_param


class InfiniteQuery(Generic[T]):
    """Accumulates pages under one cache key.

    Pages are fetched one at a time in increasing order: a lock serializes
    page fetches and ``fetch_next_page`` is a no-op while any fetch for this
    key is in flight.
    """

    def __init__(
        self,
        client: QueryClient,
        key: QueryKey,
        fetch_page: Callable[[int], Awaitable[list[T]]],
        *,
        get_next_page_param: GetNextPageParam,
        initial_page_param: int = 1,
        stale_time: Optional[float] = None,
        item_id: Optional[Callable[[T], Hashable]] = None,
    ) -> None:
        self.client = client
        self.key = key
        self._fetch_page = fetch_page
        self._get_next_page_param = get_next_page_param
        self._initial_page_param = initial_page_param
        self._stale_time = stale_time
        self._item_id = item_id
        self._lock = asyncio.Lock()
        self._fetching_next_page = False

    @property
    def entry(self) -> Optional[QueryEntry]:
        return self.client.get_entry(self.key)

    @property
    def data(self) -> Optional[InfiniteData[T]]:
        entry = self.entry
        if entry is None or not entry.has_data:
            return None
        return entry.data

    @property
    def items(self) -> list[T]:
        """Flattened pages; a repeated id keeps its first occurrence."""
        data = self.data
        if data is None:
            return []
        flat = data.flatten()
        if self._item_id is None:
            return flat
        seen: set[Hashable] = set()
        unique: list[T] = []
        for item in flat:
            item_key = self._item_id(item)
            if item_key in seen:
                continue
            seen.add(item_key)
            unique.append(item)
        return unique

    @property
    def next_page_param(self) -> Optional[int]:
        data = self.data
        if data is None or not data.pages or data.last_page_param is None:
            return None
        return self._get_next_page_param(data.pages[-1], data.pages, data.last_page_param)

    @property
    def has_next_page(self) -> bool:
        return self.next_page_param is not None

    @property
    def is_fetching(self) -> bool:
        entry = self.entry
        return entry is not None and (entry.is_fetching or entry.in_flight is not None)

    @property
    def is_fetching_next_page(self) -> bool:
        return self._fetching_next_page

    async def fetch(self, *, force: bool = False) -> InfiniteData[T]:
        """Load the first page, or refetch the loaded pages when stale."""
        return await self.client.fetch_query(
            self.key,
            self._load_pages,
            stale_time=self._stale_time,
            force=force,
        )

    async def fetch_next_page(self) -> Optional[InfiniteData[T]]:
        """Append the next page if one exists and nothing is in flight."""
        if self.data is None:
            if self.is_fetching:
                return None
            return await self.fetch()
        if self.is_fetching:
            return self.data

        next_param = self.next_page_param
        if next_param is None:
            return self.data

        self._fetching_next_page = True
        try:
            return await self.client.fetch_query(
                self.key,
                lambda: self._append_page(next_param),
                force=True,
            )
        finally:
            self._fetching_next_page = False

    async def _load_pages(self) -> InfiniteData[T]:
        async with self._lock:
            previous = self.data
            target_pages = len(previous.pages) if previous is not None else 1
            result: InfiniteData[T] = InfiniteData()
            param: Optional[int] = self._initial_page_param
            while param is not None and len(result.pages) < max(target_pages, 1):
                page = await self._fetch_page(param)
                result.pages.append(page)
                result.page_params.append(param)
                param = self._get_next_page_param(page, result.pages, param)
            if previous is not None:
                logger.debug("Refetched %d page(s) for %s", len(result.pages), self.key)
            return result

    async def _append_page(self, page_param: int) -> InfiniteData[T]:
        async with self._lock:
            page = await self._fetch_page(page_param)
            current = self.data or InfiniteData()
            return InfiniteData(
                pages=[*current.pages, page],
                page_params=[*current.page_params, page_param],
            )
