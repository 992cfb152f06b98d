"""Dashboard UI preferences and their persisted schema."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, field_validator


class SortField(str, Enum):
    """Repository ordering offered by the repository list."""

    STARS = "stars"
    FORKS = "forks"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class OrgPreferences:
    """Snapshot of the persisted UI state."""

    org_name: str = ""
    sort_by: SortField = SortField.STARS
    page: int = 1


class PersistedOrgState(BaseModel):
    """Validated schema of the stored ``{orgName, sortBy, page}`` record."""

    orgName: str = ""
    sortBy: SortField = SortField.STARS
    page: int = 1

    @field_validator("page")
    @classmethod
    def validate_page(cls, value: int) -> int:
        if value < 1:
            raise ValueError("page must be 1 or greater")
        return value

    @classmethod
    def from_preferences(cls, preferences: OrgPreferences) -> "PersistedOrgState":
        return cls(orgName=preferences.org_name, sortBy=preferences.sort_by, page=preferences.page)

    def to_preferences(self) -> OrgPreferences:
        return OrgPreferences(org_name=self.orgName, sort_by=self.sortBy, page=self.page)
