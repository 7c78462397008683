"""Error taxonomy for the reference index.

Per-directory and per-document errors are local: callers log them and carry
on with a smaller result. Only a corrupt snapshot is escalated.
"""

from __future__ import annotations

from pathlib import Path


class MastgRefError(Exception):
    """Base class for mastgref errors."""


class ScanDirectoryError(MastgRefError):
    """A directory could not be listed; its subtree contributes nothing."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read directory {path}: {cause}")
        self.path = path
        self.cause = cause


class NoFrontMatterError(MastgRefError):
    """Document does not start with a front-matter block."""


class FrontMatterParseError(MastgRefError):
    """Front-matter block exists but is not a valid mapping."""


class IndexParseError(MastgRefError):
    """Persisted snapshot exists but cannot be read back."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Invalid reference snapshot {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigError(MastgRefError):
    """Configuration file failed validation."""


class InvalidIdentifierError(ValueError):
    """String does not follow the identifier grammar."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Not a valid identifier: {key!r}")
        self.key = key


class EmptyRebuildWarning(UserWarning):
    """Rebuild found no document with a title; the snapshot was left alone."""
