"""Persisted dashboard UI state: org name, sort field and page."""

from __future__ import annotations

from dataclasses import replace
import json
import logging
from typing import Callable, Optional

from pydantic import ValidationError

from orgdash.config.settings import settings
from orgdash.models.preferences import OrgPreferences, PersistedOrgState, SortField
from orgdash.store.storage import KeyValueStorage
from orgdash.utils.logger import sanitize_log_extra

logger = logging.getLogger(__name__)

STORAGE_KEY = settings.UI_STATE_STORAGE_KEY

Listener = Callable[[OrgPreferences], None]


class OrgStore:
    """Explicit state object with an injected persistence port.

    State is rehydrated once from ``storage`` when the store is created and
    written back after every mutation. Changing the org name does not reset
    the page here; callers pair ``set_org_name`` with ``reset_pagination``.
    """

    def __init__(self, storage: KeyValueStorage, *, storage_key: Optional[str] = None) -> None:
        self._storage = storage
        self._storage_key = storage_key or STORAGE_KEY
        self._listeners: list[Listener] = []
        self._state = self._rehydrate()

    @property
    def state(self) -> OrgPreferences:
        return self._state

    @property
    def org_name(self) -> str:
        return self._state.org_name

    @property
    def sort_by(self) -> SortField:
        return self._state.sort_by

    @property
    def page(self) -> int:
        return self._state.page

    def set_org_name(self, org_name: str) -> None:
        self._update(org_name=org_name)

    def set_sort_by(self, sort_by: SortField | str) -> None:
        self._update(sort_by=SortField(sort_by))

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be 1 or greater")
        self._update(page=page)

    def reset_pagination(self) -> None:
        self._update(page=1)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        self._persist()
        for listener in list(self._listeners):
            listener(self._state)

    def _persist(self) -> None:
        payload = PersistedOrgState.from_preferences(self._state).model_dump(mode="json")
        self._storage.set_item(self._storage_key, json.dumps(payload, separators=(",", ":")))

    def _rehydrate(self) -> OrgPreferences:
        raw = self._storage.get_item(self._storage_key)
        if raw is None:
            return OrgPreferences()

        try:
            return PersistedOrgState.model_validate(json.loads(raw)).to_preferences()
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning(
                "Discarding unreadable persisted UI state",
                extra=sanitize_log_extra(storage_key=self._storage_key, error=str(exc)),
            )
            return OrgPreferences()
