"""Query client: serve fresh cache hits, otherwise fetch with retry."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from orgdash.config.settings import settings
from orgdash.query.cache import Clock, FetchStatus, QueryCache, QueryEntry, QueryKey, QueryStatus
from orgdash.query.retry import RetryPolicy, run_with_retry
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

T = TypeVar("T")
Fetcher = Callable[[], Awaitable[T]]


class QueryClient:
    """Coordinates cache lookups, request deduplication and retries.

    Clock and sleeper are injectable so staleness and backoff can be
    exercised without real timers.
    """

    def __init__(
        self,
        *,
        cache: Optional[QueryCache] = None,
        stale_time: Optional[float] = None,
        gc_time: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Optional[Clock] = None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if cache is None:
            cache_kwargs: dict[str, Any] = {"gc_time": gc_time}
            if clock is not None:
                cache_kwargs["clock"] = clock
            cache = QueryCache(**cache_kwargs)
        self.cache = cache
        self.stale_time = settings.QUERY_STALE_TIME_SECONDS if stale_time is None else stale_time
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleeper

    def now(self) -> float:
        return self.cache.now()

    async def fetch_query(
        self,
        key: QueryKey,
        fetcher: Fetcher[T],
        *,
        stale_time: Optional[float] = None,
        force: bool = False,
    ) -> T:
        """Return data for ``key``, fetching only when missing, stale or forced.

        Concurrent callers for the same key share one in-flight request.
        Terminal errors are raised unchanged after the retry policy gives up.
        """
        entry = self.cache.build(key)
        effective_stale = self.stale_time if stale_time is None else stale_time
        if not force and entry.has_data and not entry.is_stale(self.now(), effective_stale):
            logger.debug("Query cache hit", extra=sanitize_log_extra(query_key=list(key)))
            return entry.data
        return await self._dispatch(entry, fetcher)

    def get_entry(self, key: QueryKey) -> Optional[QueryEntry]:
        return self.cache.get(key)

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        entry = self.cache.build(key)
        self._mark_success(entry, data)

    def invalidate(self, prefix: QueryKey = ()) -> int:
        """Mark matching entries stale so the next fetch goes to the network."""
        entries = self.cache.find_all(prefix)
        for entry in entries:
            entry.is_invalidated = True
        return len(entries)

    def observe(self, key: QueryKey) -> Callable[[], None]:
        """Pin ``key`` against garbage collection until the returned callable runs."""
        entry = self.cache.build(key)
        entry.observers += 1
        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            entry.observers = max(entry.observers - 1, 0)
            self.cache.touch(entry)

        return release

    async def _dispatch(self, entry: QueryEntry, fetcher: Fetcher[T]) -> T:
        if entry.in_flight is None:
            entry.fetch_status = FetchStatus.FETCHING
            if not entry.has_data:
                entry.status = QueryStatus.LOADING
            entry.in_flight = asyncio.ensure_future(self._run(entry, fetcher))
        # Shielded so one cancelled awaiter does not abort the shared request.
        return await asyncio.shield(entry.in_flight)

    async def _run(self, entry: QueryEntry, fetcher: Fetcher[T]) -> T:
        def record_failure(failure_count: int, _: BaseException) -> None:
            entry.failure_count = failure_count

        try:
            data = await run_with_retry(
                fetcher,
                self.retry_policy,
                sleeper=self._sleep,
                on_failure=record_failure,
            )
        except Exception as exc:
            entry.status = QueryStatus.ERROR
            entry.error = exc
            entry.error_updated_at = self.now()
            logger.warning(
                "Query failed",
                extra=sanitize_log_extra(
                    query_key=list(entry.key),
                    status=getattr(exc, "status", None),
                    failures=entry.failure_count,
                    error=str(exc),
                ),
            )
            raise
        else:
            self._mark_success(entry, data)
            return data
        finally:
            entry.fetch_status = FetchStatus.IDLE
            entry.in_flight = None
            self.cache.touch(entry)

    def _mark_success(self, entry: QueryEntry, data: Any) -> None:
        entry.data = data
        entry.status = QueryStatus.SUCCESS
        entry.error = None
        entry.data_updated_at = self.now()
        entry.is_invalidated = False
        entry.failure_count = 0
