"""Utility helper functions"""

from datetime import datetime
from typing import Optional


def normalize_org_name(org: Optional[str]) -> str:
    """
    Normalize an organization handle for use in query keys and URLs

    Args:
        org: Raw org name as typed by the user

    Returns:
        Trimmed org name; empty string when nothing usable remains
    """
    if not org:
        return ""

    return org.strip()


def parse_github_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a GitHub ISO 8601 timestamp

    Args:
        value: Timestamp such as "2024-05-01T12:00:00Z"

    Returns:
        Timezone-aware datetime, or None when missing or malformed
    """
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def calculate_percentage(value: float, total: float) -> float:
    """
    Calculate percentage

    The result is not rounded; display precision is left to the caller.

    Args:
        value: Value
        total: Total

    Returns:
        Percentage (0-100)
    """
    if total == 0:
        return 0.0

    return (value / total) * 100


def format_percentage(value: float, digits: int = 2) -> str:
    """Format a percentage for display, e.g. ``75.00%``"""
    return f"{value:.{digits}f}%"
