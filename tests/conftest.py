"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from ensure_prefix.models import Workspace
from ensure_prefix.workspace import resolve

HEADER = b"// Copyright Example Corp.\n"

LIB_SOURCE = HEADER + b"// License: MIT\npub fn answer() -> u32 {\n    42\n}\n"
BIN_SOURCE = HEADER + b"// License: Apache-2.0\nfn main() {}\n"

PREFIXES = {
    "short": HEADER,
    "long": HEADER + b"// License: MIT\n",
    "other": b"/* Copyright Someone Else */\n",
    "wildcard": HEADER + b"// License: \x1a\x1a\x1a",
    "really_long": HEADER + b"x" * 4096,
    "empty": b"",
}


def write(path: Path, content: bytes | str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode("utf-8")
    path.write_bytes(content)
    return path


def make_workspace_root(base: Path) -> Path:
    """Create a workspace with a root package and two members.

    workspace_root (lib, default), wbin (bin), wlib (lib, default).
    """
    root = base / "workspace_root"
    write(
        root / "Cargo.toml",
        "\n".join(
            [
                "[package]",
                'name = "workspace_root"',
                'version = "0.1.0"',
                "",
                "[workspace]",
                'members = ["wbin", "wlib"]',
                'default-members = [".", "wlib"]',
                "",
            ]
        ),
    )
    write(root / "src" / "lib.rs", LIB_SOURCE)

    write(
        root / "wbin" / "Cargo.toml",
        '[package]\nname = "wbin"\nversion = "0.1.0"\n',
    )
    write(root / "wbin" / "src" / "main.rs", BIN_SOURCE)

    write(
        root / "wlib" / "Cargo.toml",
        '[package]\nname = "wlib"\nversion = "0.1.0"\n',
    )
    write(root / "wlib" / "src" / "lib.rs", LIB_SOURCE)
    return root


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Path to the generated workspace_root directory."""
    return make_workspace_root(tmp_path)


@pytest.fixture
def workspace(workspace_root: Path) -> Workspace:
    """The resolved workspace_root workspace."""
    return resolve(workspace_root / "Cargo.toml")


@pytest.fixture
def prefixes(tmp_path: Path) -> dict[str, Path]:
    """Prefix files keyed by name."""
    return {
        name: write(tmp_path / "prefixes" / f"{name}.txt", content)
        for name, content in PREFIXES.items()
    }


@pytest.fixture
def workspace_sources(workspace_root: Path) -> dict[str, Path]:
    """Source file of each package in workspace_root."""
    return {
        "workspace_root": workspace_root / "src" / "lib.rs",
        "wbin": workspace_root / "wbin" / "src" / "main.rs",
        "wlib": workspace_root / "wlib" / "src" / "lib.rs",
    }
