"""Domain and persistence models"""

from orgdash.models.github import GithubOrg, GithubOwner, GithubRepo, LanguageBytes, LanguageShare
from orgdash.models.preferences import OrgPreferences, PersistedOrgState, SortField
from orgdash.models.ui_state import UIStateRecord

__all__ = [
    "GithubOrg",
    "GithubOwner",
    "GithubRepo",
    "LanguageBytes",
    "LanguageShare",
    "OrgPreferences",
    "PersistedOrgState",
    "SortField",
    "UIStateRecord",
]
