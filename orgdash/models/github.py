"""Typed snapshots of GitHub organization and repository payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from orgdash.utils.helpers import parse_github_datetime


LanguageBytes = dict[str, int]


@dataclass(frozen=True, slots=True)
class GithubOwner:
    """Back-reference from a repository to the account that owns it."""

    login: str
    avatar_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GithubOwner":
        return cls(login=data.get("login", ""), avatar_url=data.get("avatar_url") or "")


@dataclass(frozen=True, slots=True)
class GithubRepo:
    """Repository row as listed by ``GET /orgs/{org}/repos``."""

    id: int
    name: str
    full_name: str
    html_url: str
    owner: GithubOwner
    description: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    updated_at: Optional[datetime] = None
    language: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GithubRepo":
        """Create from GitHub REST API response."""
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            full_name=data.get("full_name", ""),
            html_url=data.get("html_url", ""),
            owner=GithubOwner.from_api(data.get("owner") or {}),
            description=data.get("description"),
            stargazers_count=int(data.get("stargazers_count") or 0),
            forks_count=int(data.get("forks_count") or 0),
            updated_at=parse_github_datetime(data.get("updated_at")),
            language=data.get("language"),
        )


@dataclass(frozen=True, slots=True)
class GithubOrg:
    """Organization metadata from ``GET /orgs/{org}``."""

    login: str
    html_url: str
    avatar_url: str = ""
    name: Optional[str] = None
    description: Optional[str] = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0

    @property
    def display_name(self) -> str:
        return self.name or self.login

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GithubOrg":
        """Create from GitHub REST API response."""
        return cls(
            login=data.get("login", ""),
            html_url=data.get("html_url", ""),
            avatar_url=data.get("avatar_url") or "",
            name=data.get("name"),
            description=data.get("description"),
            public_repos=int(data.get("public_repos") or 0),
            followers=int(data.get("followers") or 0),
            following=int(data.get("following") or 0),
        )


@dataclass(frozen=True, slots=True)
class LanguageShare:
    """One language's share of the bytes across an organization's repositories."""

    name: str
    bytes: int
    percentage: float
