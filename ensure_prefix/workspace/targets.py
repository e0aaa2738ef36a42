"""Target discovery for a single package manifest.

Mirrors cargo's rules: explicit target tables are taken as written,
conventional locations are discovered unless the matching ``auto*`` key
is switched off.

Layout:
- lib: [lib].path or src/lib.rs
- bin: [[bin]] tables, src/main.rs, src/bin/*.rs, src/bin/*/main.rs
- example/test/bench: [[example]]/[[test]]/[[bench]] tables plus
  examples/, tests/, benches/ (*.rs and */main.rs)
- custom-build: package.build or build.rs
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from ..models import Target, TargetKind

logger = logging.getLogger(__name__)


class TargetTableError(ValueError):
    """A target table in the manifest is malformed."""


def normalize_path(path: Path) -> Path:
    """Make `path` absolute and collapse `.` and `..` without following symlinks."""
    return Path(os.path.abspath(path))


# kind -> (manifest table, auto-discovery switch, conventional directory)
_AUX_KINDS: dict[TargetKind, tuple[str, str, str]] = {
    "example": ("example", "autoexamples", "examples"),
    "test": ("test", "autotests", "tests"),
    "bench": ("bench", "autobenches", "benches"),
}


def _coerce_tables(value: Any, table: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise TargetTableError(f"[[{table}]] must be an array of tables")
    return value


def _discover_rs(directory: Path) -> list[tuple[str, Path]]:
    """Find `<dir>/*.rs` and `<dir>/*/main.rs`, sorted by target name."""
    if not directory.is_dir():
        return []

    found: dict[str, Path] = {}
    for entry in sorted(directory.iterdir()):
        if entry.is_file() and entry.suffix == ".rs":
            found.setdefault(entry.stem, entry)
        elif entry.is_dir() and (entry / "main.rs").is_file():
            found.setdefault(entry.name, entry / "main.rs")
    return sorted(found.items())


def _lib_target(root: Path, package_name: str, data: dict[str, Any]) -> Target | None:
    lib = data.get("lib")
    if lib is not None and not isinstance(lib, dict):
        raise TargetTableError("[lib] must be a table")
    lib = lib or {}

    name = str(lib.get("name") or package_name.replace("-", "_"))
    path = lib.get("path")
    if isinstance(path, str):
        return Target(name=name, kind="lib", src_path=root / path)

    default = root / "src" / "lib.rs"
    if default.is_file():
        return Target(name=name, kind="lib", src_path=default)
    return None


def _bin_path(root: Path, package_name: str, table: dict[str, Any]) -> Path:
    path = table.get("path")
    if isinstance(path, str):
        return root / path

    name = str(table["name"])
    candidates = [
        root / "src" / "bin" / f"{name}.rs",
        root / "src" / "bin" / name / "main.rs",
    ]
    if name == package_name:
        candidates.insert(0, root / "src" / "main.rs")
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    # cargo reports this at build time; keep the conventional location
    return candidates[0]


def _bin_targets(root: Path, package_name: str, data: dict[str, Any], package: dict[str, Any]) -> list[Target]:
    results = []
    declared_names: set[str] = set()
    declared_paths: set[Path] = set()

    for table in _coerce_tables(data.get("bin"), "bin"):
        if not isinstance(table.get("name"), str) and not isinstance(table.get("path"), str):
            raise TargetTableError("[[bin]] needs a name or a path")
        name = str(table.get("name") or Path(str(table["path"])).stem)
        path = _bin_path(root, package_name, {**table, "name": name})
        declared_names.add(name)
        declared_paths.add(path)
        results.append(Target(name=name, kind="bin", src_path=path))

    if package.get("autobins", True) is False:
        return results

    discovered: list[tuple[str, Path]] = []
    main_rs = root / "src" / "main.rs"
    if main_rs.is_file():
        discovered.append((package_name, main_rs))
    discovered.extend(_discover_rs(root / "src" / "bin"))

    for name, path in discovered:
        if name in declared_names or path in declared_paths:
            continue
        results.append(Target(name=name, kind="bin", src_path=path))

    return results


def _aux_targets(root: Path, kind: TargetKind, data: dict[str, Any], package: dict[str, Any]) -> list[Target]:
    table_name, auto_key, directory = _AUX_KINDS[kind]

    results = []
    declared_names: set[str] = set()
    declared_paths: set[Path] = set()

    for table in _coerce_tables(data.get(table_name), table_name):
        name = table.get("name")
        if not isinstance(name, str):
            raise TargetTableError(f"[[{table_name}]] needs a name")
        path = table.get("path")
        if isinstance(path, str):
            src_path = root / path
        else:
            src_path = root / directory / f"{name}.rs"
            if not src_path.is_file() and (root / directory / name / "main.rs").is_file():
                src_path = root / directory / name / "main.rs"
        declared_names.add(name)
        declared_paths.add(src_path)
        results.append(Target(name=name, kind=kind, src_path=src_path))

    if package.get(auto_key, True) is False:
        return results

    for name, path in _discover_rs(root / directory):
        if name in declared_names or path in declared_paths:
            continue
        results.append(Target(name=name, kind=kind, src_path=path))

    return results


def _build_target(root: Path, package: dict[str, Any]) -> Target | None:
    build = package.get("build")
    if build is False:
        return None
    if isinstance(build, str):
        return Target(name="build-script-build", kind="custom-build", src_path=root / build)

    default = root / "build.rs"
    if default.is_file():
        return Target(name="build-script-build", kind="custom-build", src_path=default)
    return None


def discover_targets(manifest_path: Path, data: dict[str, Any]) -> tuple[Target, ...]:
    """Return every target of the package described by `data`.

    Args:
        manifest_path: Absolute path of the package's Cargo.toml
        data: Parsed manifest contents (must contain [package])

    Raises:
        TargetTableError: If a target table is malformed
    """
    root = manifest_path.parent
    package = data["package"]
    package_name = package["name"]

    targets: list[Target] = []

    lib = _lib_target(root, package_name, data)
    if lib is not None:
        targets.append(lib)

    targets.extend(_bin_targets(root, package_name, data, package))
    for kind in _AUX_KINDS:
        targets.extend(_aux_targets(root, kind, data, package))

    build = _build_target(root, package)
    if build is not None:
        targets.append(build)

    logger.debug("Discovered %d target(s) for %s", len(targets), package_name)
    return tuple(
        Target(name=t.name, kind=t.kind, src_path=normalize_path(t.src_path))
        for t in targets
    )
