"""Pure repository ordering for the repository list."""

from datetime import datetime, timezone
from typing import List, Sequence

from orgdash.models.github import GithubRepo
from orgdash.models.preferences import SortField

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def sort_repositories(repos: Sequence[GithubRepo], sort_by: SortField) -> List[GithubRepo]:
    """
    Order repositories for display

    Returns a new list and leaves ``repos`` untouched.

    Args:
        repos: Accumulated repositories
        sort_by: Stars, forks or last update, all descending

    Returns:
        Sorted copy of the repositories
    """
    sort_by = SortField(sort_by)

    if sort_by == SortField.FORKS:
        return sorted(repos, key=lambda repo: repo.forks_count, reverse=True)

    if sort_by == SortField.UPDATED:
        return sorted(repos, key=lambda repo: repo.updated_at or _EPOCH, reverse=True)

    return sorted(repos, key=lambda repo: repo.stargazers_count, reverse=True)
