"""Compose, humanize and speak campus announcements."""

__version__ = "0.1.0"
