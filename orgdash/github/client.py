"""Async GitHub REST client for organization, repository and language lookups."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from orgdash.config.settings import settings
from orgdash.github.credentials import CredentialHolder
from orgdash.github.errors import InvalidInputError, RequestFailedError, error_from_response
from orgdash.models.github import GithubOrg, GithubRepo, LanguageBytes
from orgdash.utils.helpers import normalize_org_name
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.github+json"


@dataclass(slots=True)
class RateLimitStatus:
    """Last rate limit headers seen on any response."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0


def _segment(value: str) -> str:
    return quote(value, safe="")


def _int_header(headers: httpx.Headers, name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class GitHubOrgClient:
    """Read-only client for the three endpoints the dashboard consumes.

    All operations share one error classification policy: a non-success
    status is raised as a ``GithubApiError`` subclass carrying the status
    code, so callers branch on ``error.status`` / ``error.kind`` instead of
    parsing messages. Retrying is left to the query layer.
    """

    def __init__(
        self,
        *,
        credentials: Optional[CredentialHolder] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> None:
        self.credentials = credentials if credentials is not None else CredentialHolder()
        self.rate_limit = RateLimitStatus()
        self._user_agent = user_agent or settings.USER_AGENT
        self._api_version = api_version or settings.GITHUB_API_VERSION
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.GITHUB_API_BASE_URL,
            transport=transport,
            timeout=httpx.Timeout(timeout_seconds or settings.HTTP_TIMEOUT_SECONDS),
        )

    async def __aenter__(self) -> "GitHubOrgClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_org_repos(
        self,
        org: str,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> list[GithubRepo]:
        """Fetch one page of an organization's public repositories.

        Args:
            org: Organization login; surrounding whitespace is ignored.
            page: 1-based page number.
            page_size: Items per page, defaults to ``REPOS_PAGE_SIZE``.

        Returns:
            Repositories in API order; empty without a request when the
            trimmed org is empty.
        """
        trimmed_org = normalize_org_name(org)
        if not trimmed_org:
            return []
        if page < 1:
            raise InvalidInputError("Page must be 1 or greater")

        per_page = page_size or settings.REPOS_PAGE_SIZE
        payload = await self._get(
            f"/orgs/{_segment(trimmed_org)}/repos",
            params={"per_page": str(per_page), "page": str(page)},
            default_message="Failed to fetch organization repositories",
        )
        if not isinstance(payload, list):
            raise RequestFailedError("Unexpected repository list payload", 200)
        return [GithubRepo.from_api(item) for item in payload]

    async def fetch_org_details(self, org: str) -> GithubOrg:
        """Fetch organization metadata; an empty org is rejected with status 400."""
        trimmed_org = normalize_org_name(org)
        if not trimmed_org:
            raise InvalidInputError("Organization is required", 400)

        payload = await self._get(
            f"/orgs/{_segment(trimmed_org)}",
            default_message="Failed to fetch organization details",
        )
        if not isinstance(payload, dict):
            raise RequestFailedError("Unexpected organization payload", 200)
        return GithubOrg.from_api(payload)

    async def fetch_repo_languages(self, owner_login: str, repo_name: str) -> LanguageBytes:
        """Fetch the language -> bytes map of a single repository."""
        owner = (owner_login or "").strip()
        repo = (repo_name or "").strip()
        if not owner or not repo:
            raise InvalidInputError("Repository owner and name are required", 400)

        payload = await self._get(
            f"/repos/{_segment(owner)}/{_segment(repo)}/languages",
            default_message="Failed to fetch repository languages",
        )
        if not isinstance(payload, dict):
            raise RequestFailedError("Unexpected languages payload", 200)
        return {str(name): int(size) for name, size in payload.items()}

    def _headers(self) -> dict[str, str]:
        # Rebuilt per request so a cleared token never lingers.
        headers = {
            "Accept": ACCEPT_HEADER,
            "User-Agent": self._user_agent,
            "X-GitHub-Api-Version": self._api_version,
        }
        headers.update(self.credentials.authorization_header())
        return headers

    async def _get(
        self,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        default_message: str,
    ) -> Any:
        try:
            response = await self._client.get(path, params=params, headers=self._headers())
        except httpx.TransportError as exc:
            logger.warning(
                "GitHub request transport error",
                extra=sanitize_log_extra(path=path, params=params, error=str(exc)),
            )
            raise RequestFailedError(f"{default_message}: {exc.__class__.__name__}", 0) from exc

        self._record_rate_limit(response.headers)

        if response.is_success:
            return response.json()

        body: Any = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                body = None

        error = error_from_response(response.status_code, body, default_message)
        logger.warning(
            "GitHub request failed",
            extra=sanitize_log_extra(
                path=path,
                params=params,
                status=response.status_code,
                error=error.message,
                rate_limit_remaining=self.rate_limit.remaining,
            ),
        )
        raise error

    def _record_rate_limit(self, headers: httpx.Headers) -> None:
        limit = _int_header(headers, "x-ratelimit-limit")
        remaining = _int_header(headers, "x-ratelimit-remaining")
        reset = _int_header(headers, "x-ratelimit-reset")
        if limit is None and remaining is None and reset is None:
            return
        self.rate_limit = RateLimitStatus(
            limit=limit,
            remaining=remaining,
            reset_at=datetime.fromtimestamp(reset, tz=UTC) if reset is not None else None,
        )
