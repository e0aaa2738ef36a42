"""Prefix verification for source files."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .errors import PrefixUnreadable, SourceUnreadable

logger = logging.getLogger(__name__)

# SUB control character; matches any byte at its position
WILDCARD = 0x1A

ReadErrorHandler = Callable[[Path, OSError], None]


def read_prefix(path: Path | str) -> bytes:
    """Load the prefix pattern as raw bytes.

    Raises:
        PrefixUnreadable: If the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.debug("Failed to read prefix %s: %s", path, e)
        raise PrefixUnreadable(path) from e


def matches_prefix(data: bytes, prefix: bytes) -> bool:
    """True when `data` starts with `prefix`, honouring wildcard bytes."""
    if len(data) < len(prefix):
        return False
    return all(want == got or want == WILDCARD for want, got in zip(prefix, data))


def _log_read_error(path: Path, error: OSError) -> None:
    logger.error("Error reading %s: %s", path, error)


def has_prefix(path: Path, prefix: bytes, on_read_error: ReadErrorHandler | None = None) -> bool:
    """Check one file.

    A file shorter than the prefix fails. A read error fails the file and is
    reported to `on_read_error`; failing to open the file at all raises.

    Raises:
        SourceUnreadable: If the file cannot be opened
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise SourceUnreadable(path, e) from e

    with f:
        try:
            data = f.read(len(prefix))
        except OSError as e:
            (on_read_error or _log_read_error)(path, e)
            return False

    return matches_prefix(data, prefix)


def find_violations(
    paths: Iterable[Path],
    prefix: bytes,
    *,
    jobs: int = 1,
    on_read_error: ReadErrorHandler | None = None,
) -> list[Path]:
    """Return the paths that do not start with `prefix`, sorted by path string.

    Args:
        paths: Files to check (duplicates are checked once)
        prefix: Pattern bytes; 0x1A is a wildcard
        jobs: Worker threads; 1 checks files sequentially
        on_read_error: Called with (path, error) for read errors other than EOF

    Raises:
        SourceUnreadable: If any file cannot be opened
    """
    unique = sorted(set(paths), key=str)

    def check(path: Path) -> bool:
        return has_prefix(path, prefix, on_read_error)

    if jobs > 1 and len(unique) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            verdicts = list(executor.map(check, unique))
    else:
        verdicts = [check(p) for p in unique]

    violations = [p for p, ok in zip(unique, verdicts) if not ok]
    logger.debug("Checked %d file(s), %d violation(s)", len(unique), len(violations))
    return violations
