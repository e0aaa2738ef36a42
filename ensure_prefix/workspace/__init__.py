"""Cargo workspace resolution."""

from .loader import load_package, read_manifest, resolve
from .targets import discover_targets

__all__ = [
    "resolve",
    "read_manifest",
    "load_package",
    "discover_targets",
]
