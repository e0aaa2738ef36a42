"""Package selection: turn a filter into the set of source paths to check."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .errors import ConflictingFilter
from .models import Package, WorkspaceGraph

logger = logging.getLogger(__name__)

FilterMode = Literal["default", "all", "packages"]


@dataclass(frozen=True)
class PackageFilter:
    """Which workspace members to check.

    `default` and `all` pick a member list and drop anything named in
    `exclude`. `packages` visits every member and keeps only those named in
    `names`. Names that are not members match nothing.
    """

    mode: FilterMode = "default"
    names: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    def __post_init__(self):
        if self.mode == "packages" and not self.names:
            raise ValueError("a packages filter needs at least one name")
        if self.mode != "packages" and self.names:
            raise ValueError(f"a {self.mode} filter does not take package names")
        if self.mode == "packages" and self.exclude:
            raise ValueError("a packages filter does not take exclusions")

    @classmethod
    def from_flags(
        cls,
        all_members: bool = False,
        packages: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> PackageFilter:
        """Build a filter from command-line flags.

        Raises:
            ConflictingFilter: For --all with --package, or --exclude with --package
        """
        names = frozenset(packages)
        excluded = frozenset(exclude)

        if names and all_members:
            raise ConflictingFilter("--all", "--package")
        if names and excluded:
            raise ConflictingFilter("--exclude", "--package")

        if names:
            return cls(mode="packages", names=names)
        return cls(mode="all" if all_members else "default", exclude=excluded)

    def members(self, workspace: WorkspaceGraph) -> Iterator[Package]:
        """Candidate packages, before the membership predicate."""
        if self.mode == "default":
            return workspace.default_members()
        return workspace.all_members()

    def accepts(self, package: Package) -> bool:
        if self.mode == "packages":
            return package.name in self.names
        return package.name not in self.exclude

    def packages(self, workspace: WorkspaceGraph) -> Iterator[Package]:
        return (p for p in self.members(workspace) if self.accepts(p))


def select_paths(workspace: WorkspaceGraph, package_filter: PackageFilter) -> set[Path]:
    """Collect the source path of every target of every selected package.

    An empty result is returned as-is; the caller decides whether it is fatal.
    """
    paths: set[Path] = set()
    selected = []
    for package in package_filter.packages(workspace):
        selected.append(package.name)
        paths.update(package.source_paths)

    logger.debug("Selected %d package(s): %s", len(selected), ", ".join(sorted(selected)))
    return paths


def list_paths(manifest_path: Path | str, package_filter: PackageFilter) -> set[Path]:
    """Resolve the workspace at `manifest_path` and select source paths."""
    from .workspace import resolve

    return select_paths(resolve(manifest_path), package_filter)
