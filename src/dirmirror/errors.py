"""Errors raised while mirroring a directory tree."""

from __future__ import annotations

from pathlib import Path


class MirrorError(Exception):
    """Base for filesystem failures that abort a mirror run."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class DirectoryUnreadable(MirrorError):
    """A directory could not be listed (missing, not a directory, no access)."""


class StatUnavailable(MirrorError):
    """A file that was just listed could no longer be stat'ed."""


class CopyFailed(MirrorError):
    """Opening, creating, copying or timestamping a file failed."""


class DeleteFailed(MirrorError):
    """A destination file or directory could not be removed."""


class CreateFailed(MirrorError):
    """A destination directory could not be created."""


class QuitRequested(Exception):
    """The user answered ``q`` at a confirmation prompt."""
