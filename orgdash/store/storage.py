"""Key-value storage backends for persisted UI state."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from orgdash.models.ui_state import UIStateRecord


class KeyValueStorage(Protocol):
    """Minimal string key-value interface, shaped like browser local storage."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SQLAlchemyStorage:
    """SQLAlchemy-backed storage writing to the ui_state table."""

    def __init__(self, session_factory: Callable[[], Any]) -> None:
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        db = self._session_factory()
        try:
            record = db.query(UIStateRecord).filter(UIStateRecord.key == key).one_or_none()
            return record.value if record is not None else None
        finally:
            db.close()

    def set_item(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            record = db.query(UIStateRecord).filter(UIStateRecord.key == key).one_or_none()
            if record is None:
                db.add(UIStateRecord(key=key, value=value))
            else:
                record.value = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def remove_item(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(UIStateRecord).filter(UIStateRecord.key == key).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
