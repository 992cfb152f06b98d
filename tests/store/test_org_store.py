from __future__ import annotations

import json
import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orgdash.config.database import init_db
from orgdash.models.preferences import OrgPreferences, SortField
from orgdash.store.org_store import STORAGE_KEY, OrgStore
from orgdash.store.storage import InMemoryStorage, SQLAlchemyStorage


def test_defaults_when_nothing_is_persisted() -> None:
    store = OrgStore(InMemoryStorage())

    assert store.state == OrgPreferences(org_name="", sort_by=SortField.STARS, page=1)


def test_mutations_are_persisted_as_compact_json() -> None:
    storage = InMemoryStorage()
    store = OrgStore(storage)

    store.set_org_name("vercel")
    store.set_sort_by("forks")
    store.set_page(3)

    assert STORAGE_KEY == "github-org-dashboard/ui-state"
    assert json.loads(storage.get_item(STORAGE_KEY)) == {"orgName": "vercel", "sortBy": "forks", "page": 3}


def test_state_is_rehydrated_from_storage() -> None:
    storage = InMemoryStorage(
        {STORAGE_KEY: json.dumps({"orgName": "facebook", "sortBy": "updated", "page": 4})}
    )

    store = OrgStore(storage)

    assert store.org_name == "facebook"
    assert store.sort_by == SortField.UPDATED
    assert store.page == 4


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps([1, 2]),
        json.dumps({"orgName": "acme", "sortBy": "size", "page": 1}),
        json.dumps({"orgName": "acme", "sortBy": "stars", "page": 0}),
    ],
)
def test_unreadable_persisted_state_falls_back_to_defaults(raw: str, caplog: pytest.LogCaptureFixture) -> None:
    storage = InMemoryStorage({STORAGE_KEY: raw})

    with caplog.at_level(logging.WARNING, logger="orgdash.store.org_store"):
        store = OrgStore(storage)

    assert store.state == OrgPreferences()
    assert "Discarding unreadable persisted UI state" in caplog.text


def test_page_below_one_is_rejected() -> None:
    store = OrgStore(InMemoryStorage())

    with pytest.raises(ValueError):
        store.set_page(0)
    assert store.page == 1


def test_unknown_sort_field_is_rejected() -> None:
    store = OrgStore(InMemoryStorage())

    with pytest.raises(ValueError):
        store.set_sort_by("size")


def test_changing_org_does_not_reset_page_by_itself() -> None:
    store = OrgStore(InMemoryStorage())
    store.set_page(5)

    store.set_org_name("other")
    assert store.page == 5

    store.reset_pagination()
    assert store.page == 1


def test_listeners_are_notified_until_unsubscribed() -> None:
    store = OrgStore(InMemoryStorage())
    seen: list[OrgPreferences] = []

    unsubscribe = store.subscribe(seen.append)
    store.set_org_name("acme")
    unsubscribe()
    store.set_page(2)

    assert seen == [OrgPreferences(org_name="acme")]


def test_sqlalchemy_storage_round_trips_store_state() -> None:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    storage = SQLAlchemyStorage(sessionmaker(autocommit=False, autoflush=False, bind=engine))

    store = OrgStore(storage)
    store.set_org_name("vercel")
    store.set_sort_by(SortField.UPDATED)
    store.set_page(2)

    restored = OrgStore(storage)
    assert restored.state == OrgPreferences(org_name="vercel", sort_by=SortField.UPDATED, page=2)

    storage.remove_item(STORAGE_KEY)
    assert storage.get_item(STORAGE_KEY) is None
