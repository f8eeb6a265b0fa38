"""Exceptions surfaced to callers of the manifest services."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List


class SoundkitCatalogError(Exception):
    """Base class for unrecoverable catalog failures."""


class ManifestWriteError(SoundkitCatalogError):
    """Raised when the manifest document cannot be persisted."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to write manifest {path}: {reason}")
        self.path = path


class ManifestLoadError(SoundkitCatalogError):
    """Raised when a manifest document is missing or malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to load manifest {path}: {reason}")
        self.path = path


class SlugCollisionError(SoundkitCatalogError):
    """Raised when distinct kit names map to the same id and suffixing is disabled."""

    def __init__(self, collisions: Dict[str, List[str]]) -> None:
        details = "; ".join(f"{slug!r} <- {names}" for slug, names in sorted(collisions.items()))
        super().__init__(f"Kit id collision: {details}")
        self.collisions = collisions
