"""Data layer for a GitHub organization dashboard."""

__version__ = "1.0.0"
