"""Volatile bearer token holder shared by every outgoing request."""

from __future__ import annotations

from typing import Optional


class CredentialHolder:
    """Keeps an optional personal access token in memory only.

    The token is never persisted and never rendered by ``repr``.
    """

    def __init__(self, token: Optional[str] = None) -> None:
        self._token: Optional[str] = None
        self.set_token(token)

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_set(self) -> bool:
        return self._token is not None

    def set_token(self, token: Optional[str]) -> None:
        """Store a trimmed token; ``None`` or a blank string clears it."""
        cleaned = (token or "").strip()
        self._token = cleaned or None

    def clear(self) -> None:
        self._token = None

    def authorization_header(self) -> dict[str, str]:
        if self._token is None:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def __repr__(self) -> str:
        return f"<CredentialHolder is_set={self.is_set}>"
