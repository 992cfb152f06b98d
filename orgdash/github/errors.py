"""Typed errors raised by the GitHub API client."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional


class ErrorKind(str, Enum):
    """Classification that downstream code branches on instead of messages."""

    NOT_FOUND = "not_found"
    RATE_LIMITED_OR_FORBIDDEN = "rate_limited_or_forbidden"
    REQUEST_FAILED = "request_failed"
    INVALID_INPUT = "invalid_input"


class GithubApiError(Exception):
    """Base error carrying the remote status code and optional docs link."""

    kind: ErrorKind = ErrorKind.REQUEST_FAILED

    def __init__(self, message: str, status: int, documentation_url: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.documentation_url = documentation_url

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} status={self.status} message={self.message!r}>"


class NotFoundError(GithubApiError):
    """Remote 404: the organization or repository does not exist."""

    kind = ErrorKind.NOT_FOUND


class RateLimitedError(GithubApiError):
    """Remote 403: quota exhausted or access denied."""

    kind = ErrorKind.RATE_LIMITED_OR_FORBIDDEN


class RequestFailedError(GithubApiError):
    """Any other non-success status, or a transport failure (status 0)."""

    kind = ErrorKind.REQUEST_FAILED


class InvalidInputError(GithubApiError):
    """Rejected locally before any request was made."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, status: int = 400, documentation_url: Optional[str] = None) -> None:
        super().__init__(message, status, documentation_url)


NOT_FOUND_MESSAGE = "Organization not found"
RATE_LIMITED_MESSAGE = "Rate limit exceeded or access forbidden by GitHub API"


def error_from_response(
    status: int,
    body: Any,
    default_message: str,
) -> GithubApiError:
    """Classify a non-success response into the error taxonomy.

    Args:
        status: HTTP status code.
        body: Parsed JSON body, or None when the response was not JSON.
        default_message: Fallback message for the generic failure case.

    Returns:
        The typed error; the remote ``message`` wins over defaults.
    """
    message_from_body: Optional[str] = None
    documentation_url: Optional[str] = None
    if isinstance(body, dict):
        raw_message = body.get("message")
        if isinstance(raw_message, str) and raw_message:
            message_from_body = raw_message
        raw_docs = body.get("documentation_url")
        if isinstance(raw_docs, str) and raw_docs:
            documentation_url = raw_docs

    if status == 404:
        return NotFoundError(message_from_body or NOT_FOUND_MESSAGE, 404, documentation_url)
    if status == 403:
        return RateLimitedError(message_from_body or RATE_LIMITED_MESSAGE, 403, documentation_url)
    return RequestFailedError(message_from_body or default_message, status, documentation_url)


Panel = Literal["repos", "org", "languages"]

_PANEL_MESSAGES: dict[Panel, dict[ErrorKind, str]] = {
    "repos": {
        ErrorKind.NOT_FOUND: "Organization not found.",
        ErrorKind.RATE_LIMITED_OR_FORBIDDEN: (
            "GitHub API rate limit exceeded or access forbidden. Please wait a bit and try again."
        ),
        ErrorKind.REQUEST_FAILED: "Something went wrong while fetching repositories. Please try again.",
        ErrorKind.INVALID_INPUT: "Enter a GitHub organization handle to see its public repositories.",
    },
    "org": {
        ErrorKind.NOT_FOUND: "Organization not found.",
        ErrorKind.RATE_LIMITED_OR_FORBIDDEN: (
            "GitHub API rate limit exceeded or access forbidden. Please wait a bit and try again."
        ),
        ErrorKind.REQUEST_FAILED: "Something went wrong while fetching organization details. Please try again.",
        ErrorKind.INVALID_INPUT: "Enter a GitHub organization handle to see its details.",
    },
    "languages": {
        ErrorKind.NOT_FOUND: "Failed to fetch language data. This may be due to rate limiting.",
        ErrorKind.RATE_LIMITED_OR_FORBIDDEN: "Failed to fetch language data. This may be due to rate limiting.",
        ErrorKind.REQUEST_FAILED: "Failed to fetch language data. This may be due to rate limiting.",
        ErrorKind.INVALID_INPUT: "Language distribution will appear here once repositories are loaded.",
    },
}


def describe_error(error: BaseException, panel: Panel = "repos") -> str:
    """Human-readable message for an error shown in place of a panel."""
    kind = error.kind if isinstance(error, GithubApiError) else ErrorKind.REQUEST_FAILED
    return _PANEL_MESSAGES[panel][kind]
