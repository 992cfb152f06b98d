"""Debounced organization search input."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from orgdash.config.settings import settings
from orgdash.store.org_store import OrgStore
from orgdash.utils.helpers import normalize_org_name

logger = logging.getLogger(__name__)


class DebouncedOrgSearch:
    """Apply typed org names to the store once typing pauses.

    Each applied value sets the org name and resets the page to 1, so the
    repository list always starts from the first page for a new org.
    """

    def __init__(
        self,
        store: OrgStore,
        *,
        delay_ms: Optional[int] = None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._delay_seconds = (settings.SEARCH_DEBOUNCE_MS if delay_ms is None else delay_ms) / 1000
        self._sleep = sleeper
        self._pending: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    def update(self, value: str) -> None:
        """Record new input and restart the debounce window."""
        self._cancel_task()
        self._pending = value
        self._task = asyncio.get_running_loop().create_task(self._apply_later())

    async def wait(self) -> None:
        """Wait for the current debounce window to elapse and apply."""
        task = self._task
        if task is not None:
            await task

    async def flush(self) -> None:
        """Apply the pending value immediately."""
        self._cancel_task()
        if self._pending is not None:
            self._apply(self._pending)

    def cancel(self) -> None:
        self._cancel_task()
        self._pending = None

    async def _apply_later(self) -> None:
        await self._sleep(self._delay_seconds)
        self._task = None
        if self._pending is not None:
            self._apply(self._pending)

    def _apply(self, value: str) -> None:
        self._pending = None
        org = normalize_org_name(value)
        if org == self._store.org_name:
            return
        logger.debug("Applying debounced org search")
        self._store.set_org_name(org)
        self._store.reset_pagination()

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
