"""Data models for the workspace package graph."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

# Target kinds as reported by cargo
TargetKind = Literal[
    "lib",
    "bin",
    "example",
    "test",
    "bench",
    "custom-build",
]


@dataclass(frozen=True)
class Target:
    """A single buildable artifact with one source entry point."""

    name: str
    kind: TargetKind
    src_path: Path  # absolute


@dataclass(frozen=True)
class Package:
    """A named package and its targets."""

    name: str
    manifest_path: Path  # absolute path to Cargo.toml
    targets: tuple[Target, ...] = ()

    @property
    def root(self) -> Path:
        return self.manifest_path.parent

    @property
    def source_paths(self) -> list[Path]:
        return [t.src_path for t in self.targets]


@runtime_checkable
class WorkspaceGraph(Protocol):
    """Read-only view of a workspace used by package selection."""

    def default_members(self) -> Iterator[Package]: ...

    def all_members(self) -> Iterator[Package]: ...


@dataclass
class Workspace:
    """Container for a resolved workspace."""

    root_manifest: Path
    members: list[Package] = field(default_factory=list)
    default_member_names: list[str] = field(default_factory=list)

    # Lookup table built after loading
    _by_name: dict[str, Package] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        for package in self.members:
            self._by_name[package.name] = package

    def get(self, name: str) -> Package | None:
        """Get a member by package name."""
        return self._by_name.get(name)

    def all_members(self) -> Iterator[Package]:
        return iter(self.members)

    def default_members(self) -> Iterator[Package]:
        defaults = set(self.default_member_names)
        return (p for p in self.members if p.name in defaults)

    @property
    def root(self) -> Path:
        return self.root_manifest.parent
