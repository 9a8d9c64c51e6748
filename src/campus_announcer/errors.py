"""Exceptions raised at collaborator boundaries."""

from __future__ import annotations


class AnnouncerError(RuntimeError):
    """Base class for recoverable announcer failures."""


class PersistenceError(AnnouncerError):
    """Raised when the key-value store cannot be read or written."""


class SynthesisError(AnnouncerError):
    """Raised when the speech engine rejects an utterance."""


class RewriteError(AnnouncerError):
    """Raised when the AI rewrite request fails or returns malformed output."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
