"""Errors raised while selecting and checking workspace sources.

Every error carries the exit code the process ends with and a one-line
message for stderr. Nothing below the command layer exits the process.
"""

from __future__ import annotations

from pathlib import Path


class EnsurePrefixError(Exception):
    """Base class for fatal setup and resolution errors."""

    exit_code = 2

    @property
    def message(self) -> str:
        return str(self)


class ManifestNotFound(EnsurePrefixError):
    def __init__(self, path: Path | str):
        self.path = path
        super().__init__(f"Could not find {path}")


class ManifestInvalid(EnsurePrefixError):
    def __init__(self, path: Path | str, reason: str | None = None):
        self.path = path
        self.reason = reason
        super().__init__(f"Error parsing {path}")


class ConflictingFilter(EnsurePrefixError):
    def __init__(self, first: str, second: str):
        self.flags = (first, second)
        super().__init__(f"Cannot specify {first} and {second}")


class NoMatchingPackages(EnsurePrefixError):
    def __init__(self):
        super().__init__("Didn't find matching package(s)")


class PrefixUnreadable(EnsurePrefixError):
    def __init__(self, path: Path | str):
        self.path = path
        super().__init__(f"Error reading prefix-path file {path}")


class SourceUnreadable(EnsurePrefixError):
    def __init__(self, path: Path, error: OSError):
        self.path = path
        self.error = error
        reason = error.strerror or str(error)
        super().__init__(f"Error reading source file {path}: {reason}")
