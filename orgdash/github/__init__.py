"""GitHub REST client primitives."""

from orgdash.github.client import GitHubOrgClient, RateLimitStatus
from orgdash.github.credentials import CredentialHolder
from orgdash.github.errors import (
    ErrorKind,
    GithubApiError,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
    RequestFailedError,
    describe_error,
)

__all__ = [
    "GitHubOrgClient",
    "RateLimitStatus",
    "CredentialHolder",
    "ErrorKind",
    "GithubApiError",
    "InvalidInputError",
    "NotFoundError",
    "RateLimitedError",
    "RequestFailedError",
    "describe_error",
]
