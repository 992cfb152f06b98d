from __future__ import annotations

from datetime import datetime, timezone

import pytest

from orgdash.models.github import GithubOwner, GithubRepo
from orgdash.models.preferences import SortField
from orgdash.services.sorting import sort_repositories


def _repo(repo_id: int, *, stars: int, forks: int, updated: datetime | None) -> GithubRepo:
    return GithubRepo(
        id=repo_id,
        name=f"repo-{repo_id}",
        full_name=f"acme/repo-{repo_id}",
        html_url=f"https://github.com/acme/repo-{repo_id}",
        owner=GithubOwner(login="acme"),
        stargazers_count=stars,
        forks_count=forks,
        updated_at=updated,
    )


REPOS = [
    _repo(1, stars=5, forks=30, updated=datetime(2023, 1, 1, tzinfo=timezone.utc)),
    _repo(2, stars=50, forks=3, updated=datetime(2024, 6, 1, tzinfo=timezone.utc)),
    _repo(3, stars=20, forks=10, updated=None),
]


@pytest.mark.parametrize(
    "sort_by,expected_ids",
    [
        (SortField.STARS, [2, 3, 1]),
        (SortField.FORKS, [1, 3, 2]),
        (SortField.UPDATED, [2, 1, 3]),
        ("forks", [1, 3, 2]),
    ],
)
def test_sort_orders_descending(sort_by: SortField, expected_ids: list[int]) -> None:
    assert [repo.id for repo in sort_repositories(REPOS, sort_by)] == expected_ids


def test_sort_does_not_mutate_input() -> None:
    repos = list(REPOS)

    result = sort_repositories(repos, SortField.STARS)

    assert result is not repos
    assert [repo.id for repo in repos] == [1, 2, 3]
