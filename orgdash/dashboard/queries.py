"""Store-driven queries backing the dashboard panels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
import logging
from typing import Callable, Optional, Sequence

from orgdash.config.settings import settings
from orgdash.github.client import GitHubOrgClient
from orgdash.models.github import GithubOrg, GithubRepo, LanguageShare
from orgdash.models.preferences import OrgPreferences, SortField
from orgdash.query.client import QueryClient
from orgdash.query.infinite import InfiniteQuery, undersized_page_terminator
from orgdash.services.language_aggregator import LanguageAggregator, language_query_key
from orgdash.services.sorting import sort_repositories
from orgdash.store.org_store import OrgStore
from orgdash.utils.helpers import normalize_org_name
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

ORG_REPOS_KEY = "orgRepos"
ORG_DETAILS_KEY = "orgDetails"


@dataclass(frozen=True, slots=True)
class OrgReposResult:
    org: str
    repos: list[GithubRepo] = field(default_factory=list)
    is_loading: bool = False
    is_error: bool = False
    error: Optional[BaseException] = None
    is_fetching: bool = False
    is_fetching_next_page: bool = False
    has_next_page: bool = False


@dataclass(frozen=True, slots=True)
class OrgDetailsResult:
    org: str
    data: Optional[GithubOrg] = None
    is_loading: bool = False
    is_error: bool = False
    error: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class LanguageDistributionResult:
    languages: list[LanguageShare] = field(default_factory=list)
    is_loading: bool = False
    is_error: bool = False
    error: Optional[BaseException] = None


def sorted_repos(repos: Sequence[GithubRepo], sort_by: SortField) -> list[GithubRepo]:
    return sort_repositories(repos, sort_by)


class _OrgBoundQuery(ABC):
    """Follows the store's org name and pins the active key in the cache."""

    def __init__(self, store: OrgStore, query_client: QueryClient) -> None:
        self._store = store
        self._query_client = query_client
        self._org = ""
        self._release: Optional[Callable[[], None]] = None
        self._switch_org(normalize_org_name(store.org_name))
        self._unsubscribe = store.subscribe(self._on_store_change)

    @property
    def org(self) -> str:
        return self._org

    @property
    def enabled(self) -> bool:
        return bool(self._org)

    @abstractmethod
    def key_for(self, org: str) -> tuple[str, ...]:
        """
        Cache key for ``org``

        Args:
            org: Normalized, non-empty org name

        Returns:
            Query key tuple
        """
        pass

    def close(self) -> None:
        self._unsubscribe()
        if self._release is not None:
            self._release()
            self._release = None

    def _on_store_change(self, state: OrgPreferences) -> None:
        org = normalize_org_name(state.org_name)
        if org != self._org:
            self._switch_org(org)

    def _switch_org(self, org: str) -> None:
        if self._release is not None:
            self._release()
            self._release = None
        self._org = org
        if org:
            self._release = self._query_client.observe(self.key_for(org))
        self._on_org_switched(org)

    def _on_org_switched(self, org: str) -> None:
        pass

    def _is_current(self, org: str) -> bool:
        if org == self._org:
            return True
        logger.debug(
            "Discarding response for superseded org",
            extra=sanitize_log_extra(org=org, active_org=self._org),
        )
        return False


class OrgReposQuery(_OrgBoundQuery):
    """Infinite repository listing for the store's current org."""

    def __init__(
        self,
        store: OrgStore,
        query_client: QueryClient,
        api_client: GitHubOrgClient,
        *,
        page_size: Optional[int] = None,
    ) -> None:
        self._api_client = api_client
        self._page_size = page_size or settings.REPOS_PAGE_SIZE
        self._query: Optional[InfiniteQuery[GithubRepo]] = None
        super().__init__(store, query_client)

    def key_for(self, org: str) -> tuple[str, ...]:
        return (ORG_REPOS_KEY, org)

    def _on_org_switched(self, org: str) -> None:
        if not org:
            self._query = None
            return

        async def fetch_page(page: int) -> list[GithubRepo]:
            return await self._api_client.fetch_org_repos(org, page=page, page_size=self._page_size)

        self._query = InfiniteQuery(
            self._query_client,
            self.key_for(org),
            fetch_page,
            get_next_page_param=undersized_page_terminator(self._page_size),
            item_id=lambda repo: repo.id,
        )

    async def load(self, *, force: bool = False) -> OrgReposResult:
        """Load the first page (or serve it from cache)."""
        query = self._query
        if query is None:
            return self.result()
        org = self._org
        try:
            await query.fetch(force=force)
        except Exception as exc:
            logger.warning("Repository query failed", extra=sanitize_log_extra(org=org, error=str(exc)))
        return self._settle(org)

    async def fetch_next_page(self) -> OrgReposResult:
        """Advance one page when the end of the list becomes visible."""
        query = self._query
        if query is None or not query.has_next_page:
            return self.result()
        org = self._org
        try:
            await query.fetch_next_page()
        except Exception as exc:
            logger.warning("Repository page query failed", extra=sanitize_log_extra(org=org, error=str(exc)))
        return self._settle(org)

    def _settle(self, org: str) -> OrgReposResult:
        if self._is_current(org) and self._query is not None:
            data = self._query.data
            if data is not None and data.last_page_param is not None and self._store.page != data.last_page_param:
                self._store.set_page(data.last_page_param)
        return self.result()

    def result(self) -> OrgReposResult:
        query = self._query
        if query is None:
            return OrgReposResult(org=self._org)
        entry = query.entry
        if entry is None:
            return OrgReposResult(org=self._org)
        return OrgReposResult(
            org=self._org,
            repos=query.items,
            is_loading=entry.is_loading,
            is_error=entry.is_error,
            error=entry.error,
            is_fetching=query.is_fetching,
            is_fetching_next_page=query.is_fetching_next_page,
            has_next_page=query.has_next_page,
        )


class OrgDetailsQuery(_OrgBoundQuery):
    """Organization metadata for the store's current org."""

    def __init__(self, store: OrgStore, query_client: QueryClient, api_client: GitHubOrgClient) -> None:
        self._api_client = api_client
        super().__init__(store, query_client)

    def key_for(self, org: str) -> tuple[str, ...]:
        return (ORG_DETAILS_KEY, org)

    async def load(self, *, force: bool = False) -> OrgDetailsResult:
        org = self._org
        if not org:
            return self.result()
        try:
            await self._query_client.fetch_query(
                self.key_for(org),
                lambda: self._api_client.fetch_org_details(org),
                force=force,
            )
        except Exception as exc:
            logger.warning("Organization query failed", extra=sanitize_log_extra(org=org, error=str(exc)))
        self._is_current(org)
        return self.result()

    def result(self) -> OrgDetailsResult:
        if not self._org:
            return OrgDetailsResult(org="")
        entry = self._query_client.get_entry(self.key_for(self._org))
        if entry is None:
            return OrgDetailsResult(org=self._org)
        return OrgDetailsResult(
            org=self._org,
            data=entry.data if entry.has_data else None,
            is_loading=entry.is_loading,
            is_error=entry.is_error,
            error=entry.error,
        )


class LanguageDistributionQuery:
    """Aggregated languages keyed by org and the current repository ids.

    The key in use is pinned against garbage collection until the
    repository set changes or the query is closed.
    """

    def __init__(self, store: OrgStore, query_client: QueryClient, aggregator: LanguageAggregator) -> None:
        self._store = store
        self._query_client = query_client
        self._aggregator = aggregator
        self._key: Optional[tuple[str, str, str]] = None
        self._release: Optional[Callable[[], None]] = None

    async def load(self, repos: Sequence[GithubRepo], *, force: bool = False) -> LanguageDistributionResult:
        org = normalize_org_name(self._store.org_name)
        if not org or not repos:
            self._use_key(None)
            return self.result()

        key = language_query_key(org, repos)
        self._use_key(key)
        snapshot = list(repos)
        try:
            await self._query_client.fetch_query(key, lambda: self._aggregator.aggregate(snapshot), force=force)
        except Exception as exc:
            logger.warning("Language distribution query failed", extra=sanitize_log_extra(org=org, error=str(exc)))
        if self._key != key:
            logger.debug("Discarding language distribution for superseded repository set")
        return self.result()

    def close(self) -> None:
        self._use_key(None)

    def result(self) -> LanguageDistributionResult:
        if self._key is None:
            return LanguageDistributionResult()
        entry = self._query_client.get_entry(self._key)
        if entry is None:
            return LanguageDistributionResult()
        return LanguageDistributionResult(
            languages=list(entry.data) if entry.has_data else [],
            is_loading=entry.is_loading,
            is_error=entry.is_error,
            error=entry.error,
        )

    def _use_key(self, key: Optional[tuple[str, str, str]]) -> None:
        if key == self._key:
            return
        if self._release is not None:
            self._release()
            self._release = None
        self._key = key
        if key is not None:
            self._release = self._query_client.observe(key)


def language_panel_result(
    languages: LanguageDistributionResult,
    repos: OrgReposResult,
) -> LanguageDistributionResult:
    """Language panel state: loading or failed when either source query is."""
    return replace(
        languages,
        is_loading=languages.is_loading or repos.is_loading,
        is_error=languages.is_error or repos.is_error,
        error=languages.error or repos.error,
    )
