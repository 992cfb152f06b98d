"""Keyed query cache with stale-time and GC-time bookkeeping."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Any, Callable, Iterator, Optional

from orgdash.config.settings import settings

logger = logging.getLogger(__name__)

QueryKey = tuple[Any, ...]
Clock = Callable[[], float]


class QueryStatus(str, Enum):
    """Data lifecycle of a cache entry."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class FetchStatus(str, Enum):
    """Whether a request for the entry is currently in flight."""

    IDLE = "idle"
    FETCHING = "fetching"


@dataclass(slots=True, eq=False)
class QueryEntry:
    """Cached value plus the state machine for a single query key.

    While a refetch runs after a success, ``status`` stays ``SUCCESS`` and
    ``data`` keeps the last known good value; only ``fetch_status`` flips.
    """

    key: QueryKey
    status: QueryStatus = QueryStatus.IDLE
    fetch_status: FetchStatus = FetchStatus.IDLE
    data: Any = None
    error: Optional[BaseException] = None
    data_updated_at: Optional[float] = None
    error_updated_at: Optional[float] = None
    last_accessed_at: float = 0.0
    failure_count: int = 0
    is_invalidated: bool = False
    observers: int = 0
    in_flight: Optional[asyncio.Future] = None

    @property
    def has_data(self) -> bool:
        return self.data_updated_at is not None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == QueryStatus.ERROR

    @property
    def is_fetching(self) -> bool:
        return self.fetch_status == FetchStatus.FETCHING

    def is_stale(self, now: float, stale_time: float) -> bool:
        if self.data_updated_at is None or self.is_invalidated:
            return True
        return now - self.data_updated_at >= stale_time


class QueryCache:
    """Owns every ``QueryEntry``; evicts unobserved entries after ``gc_time``."""

    def __init__(self, *, gc_time: Optional[float] = None, clock: Clock = time.monotonic) -> None:
        self.gc_time = settings.QUERY_GC_TIME_SECONDS if gc_time is None else gc_time
        self._clock = clock
        self._entries: dict[QueryKey, QueryEntry] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: QueryKey) -> Optional[QueryEntry]:
        return self._entries.get(key)

    def build(self, key: QueryKey) -> QueryEntry:
        """Return the entry for ``key``, creating it if needed, and mark it accessed."""
        self.collect_garbage()
        entry = self._entries.get(key)
        if entry is None:
            entry = QueryEntry(key=key)
            self._entries[key] = entry
        self.touch(entry)
        return entry

    def touch(self, entry: QueryEntry) -> None:
        entry.last_accessed_at = self.now()

    def find_all(self, prefix: QueryKey = ()) -> list[QueryEntry]:
        size = len(prefix)
        return [entry for key, entry in self._entries.items() if key[:size] == prefix]

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def collect_garbage(self) -> list[QueryKey]:
        """Evict idle, unobserved entries inactive for at least ``gc_time``."""
        now = self.now()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.observers == 0 and entry.in_flight is None and now - entry.last_accessed_at >= self.gc_time
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d inactive query entries", len(expired))
        return expired

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueryEntry]:
        return iter(list(self._entries.values()))
