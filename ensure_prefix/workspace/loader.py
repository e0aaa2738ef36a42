"""Workspace resolution from Cargo manifests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from ..errors import ManifestInvalid, ManifestNotFound
from ..models import Package, Workspace
from .targets import TargetTableError, discover_targets, normalize_path

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coerce_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, str)]


def read_manifest(path: Path) -> dict[str, Any]:
    """Parse a manifest file.

    Raises:
        ManifestInvalid: If the file is not valid TOML or describes neither
            a package nor a workspace
    """
    try:
        data = tomllib.loads(path.read_bytes().decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ManifestInvalid(path, str(e)) from e
    except OSError as e:
        raise ManifestInvalid(path, e.strerror) from e

    package = data.get("package")
    workspace = data.get("workspace")
    if package is None and workspace is None:
        raise ManifestInvalid(path, "manifest has neither [package] nor [workspace]")
    if package is not None and (not isinstance(package, dict) or not isinstance(package.get("name"), str)):
        raise ManifestInvalid(path, "[package] requires a string `name`")
    if workspace is not None and not isinstance(workspace, dict):
        raise ManifestInvalid(path, "[workspace] must be a table")
    return data


def load_package(manifest_path: Path, data: dict[str, Any] | None = None) -> Package:
    """Load a single package with its targets."""
    if data is None:
        data = read_manifest(manifest_path)

    try:
        targets = discover_targets(manifest_path, data)
    except TargetTableError as e:
        raise ManifestInvalid(manifest_path, str(e)) from e
    except OSError as e:
        raise ManifestInvalid(manifest_path, str(e)) from e

    return Package(
        name=data["package"]["name"],
        manifest_path=manifest_path,
        targets=targets,
    )


def _is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in "*?[")


def _glob(root: Path, pattern: str) -> list[Path]:
    for component in pattern.split("/"):
        # `**` must be a whole path component, whatever the Python version
        if "**" in component and component != "**":
            raise ManifestInvalid(
                root / MANIFEST_NAME,
                f"invalid member pattern {pattern!r}: `**` must be an entire path component",
            )
    try:
        return sorted(root.glob(pattern))
    except (ValueError, NotImplementedError) as e:
        raise ManifestInvalid(root / MANIFEST_NAME, f"invalid member pattern {pattern!r}: {e}") from e


def expand_member_globs(root: Path, patterns: list[str]) -> list[Path]:
    """Expand workspace member globs to package directories.

    Glob matches without a Cargo.toml are skipped; a plain path without one
    is an error. Matches are sorted within each pattern and pattern order
    is preserved.

    Raises:
        ManifestInvalid: If a pattern is malformed or a listed member has
            no manifest
    """
    results: list[Path] = []
    seen: set[Path] = set()
    for pattern in patterns:
        pattern = pattern.rstrip("/") or "."
        globbed = _is_glob(pattern)
        matches = _glob(root, pattern) if globbed else [root / pattern]
        for match in matches:
            directory = normalize_path(match)
            try:
                has_manifest = (directory / MANIFEST_NAME).is_file()
            except OSError as e:
                raise ManifestInvalid(root / MANIFEST_NAME, f"{directory}: {e.strerror}") from e
            if not has_manifest:
                if globbed:
                    continue
                raise ManifestInvalid(
                    root / MANIFEST_NAME,
                    f"failed to load manifest for workspace member {directory}",
                )
            if directory in seen:
                continue
            seen.add(directory)
            results.append(directory)
    return results


def _excluded_dirs(root: Path, workspace: dict[str, Any]) -> set[Path]:
    return {normalize_path(root / e) for e in _coerce_str_list(workspace.get("exclude"))}


def _is_excluded(package_dir: Path, root: Path, workspace: dict[str, Any]) -> bool:
    return any(package_dir == ex or ex in package_dir.parents for ex in _excluded_dirs(root, workspace))


def _member_dirs(root: Path, workspace: dict[str, Any]) -> list[Path]:
    members = expand_member_globs(root, _coerce_str_list(workspace.get("members")))
    return [d for d in members if not _is_excluded(d, root, workspace)]


def _is_member(package_dir: Path, root: Path, workspace: dict[str, Any]) -> bool:
    if package_dir == root:
        return True
    return package_dir in _member_dirs(root, workspace)


def _not_a_member(manifest_path: Path, root_manifest: Path) -> ManifestInvalid:
    return ManifestInvalid(
        manifest_path,
        f"current package believes it's in a workspace when it's not: {root_manifest}",
    )


def find_workspace_root(manifest_path: Path, data: dict[str, Any]) -> tuple[Path, dict[str, Any]] | None:
    """Locate the workspace manifest that owns `manifest_path`.

    Returns (root manifest path, parsed root manifest), or None for a
    standalone package. Workspaces that exclude the package are skipped
    and the search continues upward.

    Raises:
        ManifestInvalid: If the owning workspace does not list the package
            as a member
    """
    if "workspace" in data:
        return manifest_path, data

    package_dir = manifest_path.parent
    package = data["package"]
    explicit = package.get("workspace")
    if isinstance(explicit, str):
        root_manifest = normalize_path(package_dir / explicit / MANIFEST_NAME)
        if not root_manifest.is_file():
            raise ManifestInvalid(manifest_path, f"workspace root {root_manifest} does not exist")
        root_data = read_manifest(root_manifest)
        if "workspace" not in root_data:
            raise ManifestInvalid(manifest_path, f"{root_manifest} is not a workspace root")
        if not _is_member(package_dir, root_manifest.parent, _coerce_dict(root_data["workspace"])):
            raise _not_a_member(manifest_path, root_manifest)
        return root_manifest, root_data

    for parent in package_dir.parents:
        candidate = parent / MANIFEST_NAME
        if not candidate.is_file():
            continue
        candidate_data = read_manifest(candidate)
        if "workspace" not in candidate_data:
            continue
        workspace = candidate_data["workspace"]
        if _is_member(package_dir, parent, workspace):
            return candidate, candidate_data
        if _is_excluded(package_dir, parent, workspace):
            logger.debug("%s is excluded from the workspace at %s", manifest_path, candidate)
            continue
        raise _not_a_member(manifest_path, candidate)

    return None


def resolve(manifest_path: Path | str) -> Workspace:
    """Resolve the workspace containing `manifest_path`.

    Args:
        manifest_path: Path to a package or workspace Cargo.toml

    Raises:
        ManifestNotFound: If the manifest path does not exist
        ManifestInvalid: If any manifest involved cannot be parsed, or the
            workspace layout is inconsistent
    """
    given = Path(manifest_path)
    if not given.exists():
        raise ManifestNotFound(manifest_path)

    absolute = given if given.is_absolute() else Path.cwd() / given
    try:
        data = read_manifest(absolute)
    except ManifestInvalid as e:
        logger.debug("Failed to parse %s: %s", absolute, e.reason)
        raise

    manifest = normalize_path(absolute)
    found = find_workspace_root(manifest, data)

    if found is None:
        package = load_package(manifest, data)
        logger.debug("Resolved standalone package %s", package.name)
        return Workspace(
            root_manifest=manifest,
            members=[package],
            default_member_names=[package.name],
        )

    root_manifest, root_data = found
    root = root_manifest.parent
    workspace = _coerce_dict(root_data.get("workspace"))

    members: list[Package] = []
    if "package" in root_data:
        members.append(load_package(root_manifest, root_data))
    for directory in _member_dirs(root, workspace):
        if directory == root:
            continue
        members.append(load_package(directory / MANIFEST_NAME))

    by_dir = {p.root: p for p in members}

    if "default-members" in workspace:
        default_names = []
        for directory in expand_member_globs(root, _coerce_str_list(workspace.get("default-members"))):
            if directory not in by_dir:
                raise ManifestInvalid(
                    root_manifest,
                    f"{directory} is listed in default-members but is not a member",
                )
            default_names.append(by_dir[directory].name)
    elif "package" in root_data:
        default_names = [root_data["package"]["name"]]
    else:
        default_names = [p.name for p in members]

    logger.debug(
        "Resolved workspace at %s: %d member(s), %d default",
        root,
        len(members),
        len(default_names),
    )
    return Workspace(
        root_manifest=root_manifest,
        members=members,
        default_member_names=default_names,
    )
