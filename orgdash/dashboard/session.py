"""Composition root wiring store, client, cache and queries together."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from orgdash.dashboard.queries import (
    LanguageDistributionQuery,
    LanguageDistributionResult,
    OrgDetailsQuery,
    OrgDetailsResult,
    OrgReposQuery,
    OrgReposResult,
    language_panel_result,
    sorted_repos,
)
from orgdash.dashboard.search import DebouncedOrgSearch
from orgdash.github.client import GitHubOrgClient
from orgdash.github.credentials import CredentialHolder
from orgdash.models.github import GithubRepo
from orgdash.models.preferences import SortField
from orgdash.query.client import QueryClient
from orgdash.services.language_aggregator import LanguageAggregator
from orgdash.store.org_store import OrgStore
from orgdash.store.storage import InMemoryStorage, KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DashboardSnapshot:
    """Everything the panels render, captured at one point in time."""

    repos: OrgReposResult
    details: OrgDetailsResult
    languages: LanguageDistributionResult
    sorted_repos: list[GithubRepo]


class DashboardSession:
    """One user's dashboard: persisted preferences plus cached GitHub data."""

    def __init__(
        self,
        *,
        storage: Optional[KeyValueStorage] = None,
        query_client: Optional[QueryClient] = None,
        api_client: Optional[GitHubOrgClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debounce_ms: Optional[int] = None,
    ) -> None:
        self.credentials = api_client.credentials if api_client is not None else CredentialHolder()
        self.api_client = api_client or GitHubOrgClient(credentials=self.credentials, transport=transport)
        self.store = OrgStore(storage if storage is not None else InMemoryStorage())
        self.query_client = query_client or QueryClient()
        self.repos_query = OrgReposQuery(self.store, self.query_client, self.api_client)
        self.details_query = OrgDetailsQuery(self.store, self.query_client, self.api_client)
        self.languages_query = LanguageDistributionQuery(
            self.store,
            self.query_client,
            LanguageAggregator(self.api_client),
        )
        self.search_input = DebouncedOrgSearch(self.store, delay_ms=debounce_ms)

    async def __aenter__(self) -> "DashboardSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.search_input.cancel()
        self.repos_query.close()
        self.details_query.close()
        self.languages_query.close()
        await self.api_client.aclose()

    def set_token(self, token: str) -> None:
        """Use a personal access token for subsequent requests; blank input is ignored."""
        if not token or not token.strip():
            return
        self.credentials.set_token(token)
        logger.info("GitHub token set for this session")

    def clear_token(self) -> None:
        self.credentials.clear()
        logger.info("GitHub token cleared")

    async def search(self, org: str) -> DashboardSnapshot:
        """Switch to ``org`` immediately (page reset to 1) and load it."""
        self.search_input.update(org)
        await self.search_input.flush()
        return await self.refresh()

    def set_sort(self, sort_by: SortField | str) -> None:
        self.store.set_sort_by(sort_by)

    async def refresh(self, *, force: bool = False) -> DashboardSnapshot:
        """Load details and the first page side by side (cache permitting), then languages."""
        details, repos = await asyncio.gather(
            self.details_query.load(force=force),
            self.repos_query.load(force=force),
        )
        languages = await self.languages_query.load(repos.repos, force=force)
        return self._snapshot(repos, details, languages)

    async def load_more(self) -> DashboardSnapshot:
        """Fetch the next repository page and recompute languages for the new set."""
        repos = await self.repos_query.fetch_next_page()
        languages = await self.languages_query.load(repos.repos)
        return self._snapshot(repos, self.details_query.result(), languages)

    def sorted_repositories(self) -> list[GithubRepo]:
        return sorted_repos(self.repos_query.result().repos, self.store.sort_by)

    def language_distribution(self) -> LanguageDistributionResult:
        return language_panel_result(self.languages_query.result(), self.repos_query.result())

    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot(
            self.repos_query.result(),
            self.details_query.result(),
            self.languages_query.result(),
        )

    def _snapshot(
        self,
        repos: OrgReposResult,
        details: OrgDetailsResult,
        languages: LanguageDistributionResult,
    ) -> DashboardSnapshot:
        return DashboardSnapshot(
            repos=repos,
            details=details,
            languages=language_panel_result(languages, repos),
            sorted_repos=sorted_repos(repos.repos, self.store.sort_by),
        )
