"""Client-side query cache with staleness, retry and pagination."""

from orgdash.query.cache import FetchStatus, QueryCache, QueryEntry, QueryKey, QueryStatus
from orgdash.query.client import QueryClient
from orgdash.query.infinite import InfiniteData, InfiniteQuery, undersized_page_terminator
from orgdash.query.retry import NON_RETRYABLE_STATUSES, RetryPolicy, run_with_retry

__all__ = [
    "FetchStatus",
    "QueryCache",
    "QueryEntry",
    "QueryKey",
    "QueryStatus",
    "QueryClient",
    "InfiniteData",
    "InfiniteQuery",
    "undersized_page_terminator",
    "NON_RETRYABLE_STATUSES",
    "RetryPolicy",
    "run_with_retry",
]
