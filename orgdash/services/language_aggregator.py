"""Organization-wide language distribution from per-repository byte counts."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Protocol, Sequence

from orgdash.config.settings import settings
from orgdash.models.github import GithubRepo, LanguageBytes, LanguageShare
from orgdash.utils.helpers import calculate_percentage, normalize_org_name
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

DEFAULT_TOP_LANGUAGES = 10


class LanguageSource(Protocol):
    """Anything that can fetch a repository's language byte map."""

    async def fetch_repo_languages(self, owner_login: str, repo_name: str) -> LanguageBytes: ...


def language_query_key(org: str, repos: Sequence[GithubRepo]) -> tuple[str, str, str]:
    """Cache key that changes whenever the org or the repository set changes."""
    repo_ids = ",".join(str(repo.id) for repo in repos)
    return ("languageDistribution", normalize_org_name(org), repo_ids)


def merge_language_maps(maps: Iterable[LanguageBytes]) -> dict[str, int]:
    """Sum bytes per language, keeping first-seen order."""
    totals: dict[str, int] = {}
    for language_map in maps:
        for language, size in language_map.items():
            totals[language] = totals.get(language, 0) + int(size)
    return totals


def build_language_shares(totals: dict[str, int]) -> list[LanguageShare]:
    """Turn byte totals into shares ordered by bytes, largest first.

    An all-zero (or empty) total yields an empty list rather than entries
    with undefined percentages.
    """
    total_bytes = sum(totals.values())
    if total_bytes == 0:
        return []

    shares = [
        LanguageShare(name=name, bytes=size, percentage=calculate_percentage(size, total_bytes))
        for name, size in totals.items()
    ]
    shares.sort(key=lambda share: share.bytes, reverse=True)
    return shares


def top_languages(shares: Sequence[LanguageShare], limit: int = DEFAULT_TOP_LANGUAGES) -> list[LanguageShare]:
    return list(shares[:limit])


class LanguageAggregator:
    """Fan out one languages request per repository and merge the successes.

    A failing repository only drops its own bytes from the aggregate; the
    aggregate itself never fails because of a sub-request.
    """

    def __init__(self, source: LanguageSource, *, max_concurrency: Optional[int] = None) -> None:
        self._source = source
        self._max_concurrency = max_concurrency or settings.MAX_CONCURRENT_REQUESTS

    async def aggregate(self, repos: Sequence[GithubRepo]) -> list[LanguageShare]:
        if not repos:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch_one(repo: GithubRepo) -> LanguageBytes:
            async with semaphore:
                return await self._source.fetch_repo_languages(repo.owner.login, repo.name)

        results = await asyncio.gather(*(fetch_one(repo) for repo in repos), return_exceptions=True)

        language_maps: list[LanguageBytes] = []
        failed = 0
        for repo, result in zip(repos, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                failed += 1
                logger.debug(
                    "Skipping languages for repository",
                    extra=sanitize_log_extra(repo=repo.full_name, error=str(result)),
                )
                continue
            language_maps.append(result)

        if failed:
            logger.info(
                "Language aggregation completed with partial data",
                extra=sanitize_log_extra(repos=len(repos), failed=failed),
            )
        return build_language_shares(merge_language_maps(language_maps))
