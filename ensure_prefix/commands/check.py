"""Check command implementation."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from rich.console import Console

from ..errors import EnsurePrefixError, NoMatchingPackages
from ..selection import PackageFilter, list_paths
from ..verify import find_violations, read_prefix


def _stderr_console() -> Console:
    # Plain text only: messages must be byte-for-byte predictable in CI logs
    return Console(stderr=True, markup=False, emoji=False, highlight=False, soft_wrap=True)


def collect_violations(
    manifest_path: Path | str,
    prefix_path: Path | str,
    *,
    all_members: bool = False,
    packages: Iterable[str] = (),
    exclude: Iterable[str] = (),
    jobs: int = 1,
    console: Console | None = None,
) -> list[Path]:
    """Run selection and verification, raising on fatal errors.

    Raises:
        EnsurePrefixError: For any setup or resolution failure
    """
    console = console or _stderr_console()

    prefix = read_prefix(prefix_path)
    package_filter = PackageFilter.from_flags(all_members, packages, exclude)

    paths = list_paths(manifest_path, package_filter)
    if not paths:
        raise NoMatchingPackages()

    def report_read_error(path: Path, error: OSError) -> None:
        console.print(f"Error reading {path}: {error}")

    return find_violations(paths, prefix, jobs=jobs, on_read_error=report_read_error)


def run_check(
    manifest_path: Path | str,
    prefix_path: Path | str,
    *,
    all_members: bool = False,
    packages: Iterable[str] = (),
    exclude: Iterable[str] = (),
    jobs: int = 1,
) -> int:
    """Check that every selected source file starts with the prefix.

    Args:
        manifest_path: Workspace or package Cargo.toml
        prefix_path: File holding the required prefix bytes
        all_members: Select every workspace member (--all)
        packages: Only select these packages (--package)
        exclude: Drop these packages from the default/--all selection (--exclude)
        jobs: Worker threads for verification

    Returns:
        Exit code (0 = all files match, 1 = violations found, 2 = setup error)
    """
    console = _stderr_console()

    try:
        violations = collect_violations(
            manifest_path,
            prefix_path,
            all_members=all_members,
            packages=packages,
            exclude=exclude,
            jobs=jobs,
            console=console,
        )
    except EnsurePrefixError as e:
        console.print(e.message)
        return e.exit_code

    for path in violations:
        print(path)

    return 1 if violations else 0
