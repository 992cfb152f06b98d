"""Bounded retry policy for query fetches."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from orgdash.config.settings import settings
from orgdash.github.errors import GithubApiError, InvalidInputError
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 404 and 403 are definitive; retrying only burns rate limit.
NON_RETRYABLE_STATUSES = frozenset({403, 404})


@dataclass(slots=True)
class RetryPolicy:
    """Retry up to ``max_retries`` extra attempts, never on 404/403."""

    max_retries: int = field(default_factory=lambda: settings.QUERY_MAX_RETRIES)
    backoff_base_seconds: float = field(default_factory=lambda: settings.QUERY_RETRY_BACKOFF_BASE_SECONDS)
    backoff_max_seconds: float = field(default_factory=lambda: settings.QUERY_RETRY_BACKOFF_MAX_SECONDS)

    def should_retry(self, failure_count: int, error: BaseException) -> bool:
        """Decide whether another attempt follows the ``failure_count``-th failure."""
        if isinstance(error, InvalidInputError):
            return False
        if isinstance(error, GithubApiError) and error.status in NON_RETRYABLE_STATUSES:
            return False
        return failure_count <= self.max_retries

    def delay_for(self, failure_count: int) -> float:
        """Exponential backoff: base, 2x base, 4x base ... capped at the max."""
        base = self.backoff_base_seconds * (2 ** max(failure_count - 1, 0))
        return min(base, self.backoff_max_seconds)


async def run_with_retry(
    fetcher: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """Await ``fetcher`` until it succeeds or ``policy`` gives up.

    The last error is re-raised unchanged.
    """
    failure_count = 0
    while True:
        try:
            return await fetcher()
        except Exception as exc:
            failure_count += 1
            if on_failure is not None:
                on_failure(failure_count, exc)
            if not policy.should_retry(failure_count, exc):
                raise
            delay = policy.delay_for(failure_count)
            logger.info(
                "Retrying query after failure",
                extra=sanitize_log_extra(
                    attempt=failure_count,
                    delay_seconds=delay,
                    status=getattr(exc, "status", None),
                    error=str(exc),
                ),
            )
            await sleeper(delay)
