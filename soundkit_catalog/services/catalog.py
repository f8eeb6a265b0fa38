"""Read-only lookups over a loaded manifest.

An index is built once from a manifest and never modified; loading a newer
manifest means building a new index with :func:`create_catalog_index`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Optional, Tuple

from ..config import Settings
from ..logging import get_logger
from ..schemas.manifest import Kit, Manifest, Statistics
from .manifest import collation_key, load_manifest

logger = get_logger(__name__)

DEFAULT_SAMPLES_PATH = "samples"

CompletenessFilter = Literal["all", "complete", "incomplete"]


@dataclass(frozen=True, eq=False)
class CatalogIndex:
    manifest: Manifest
    base_url: str
    samples_path: str
    by_id: Mapping[str, Kit] = field(repr=False)
    by_instrument: Mapping[str, Tuple[str, ...]] = field(repr=False)

    @property
    def statistics(self) -> Statistics:
        return self.manifest.statistics

    def metadata(self) -> Dict[str, object]:
        return {
            "version": self.manifest.version,
            "generated": self.manifest.generated,
            "total_soundkits": self.manifest.total_soundkits,
            "instruments": list(self.manifest.instruments),
        }

    def get_all(self) -> List[Kit]:
        return list(self.manifest.soundkits)

    def get_by_id(self, kit_id: str) -> Optional[Kit]:
        return self.by_id.get(kit_id)

    def get_by_name(self, name: str) -> Optional[Kit]:
        """Case-insensitive exact match; the first kit in manifest order wins."""
        wanted = name.casefold()
        for kit in self.manifest.soundkits:
            if kit.name.casefold() == wanted:
                return kit
        return None

    def get_by_instrument(self, instrument: str) -> List[Kit]:
        return [self.by_id[kit_id] for kit_id in self.by_instrument.get(instrument, ())]

    def has_instrument(self, kit_id: str, instrument: str) -> bool:
        kit = self.get_by_id(kit_id)
        return kit is not None and instrument in kit.available_instruments

    def get_complete(self) -> List[Kit]:
        return [kit for kit in self.manifest.soundkits if kit.is_complete]

    def get_incomplete(self) -> List[Kit]:
        return [kit for kit in self.manifest.soundkits if not kit.is_complete]

    def filter_by_completeness(self, status: CompletenessFilter = "all") -> List[Kit]:
        if status == "complete":
            return self.get_complete()
        if status == "incomplete":
            return self.get_incomplete()
        if status == "all":
            return self.get_all()
        raise ValueError(f"Unknown completeness filter: {status!r}")

    def search(self, query: str, include_instruments: bool = False) -> List[Kit]:
        """Kits whose name contains ``query`` ignoring case.

        With ``include_instruments`` a kit also matches when one of its
        instrument tags contains the query.
        """
        needle = query.casefold()
        matches: List[Kit] = []
        for kit in self.manifest.soundkits:
            if needle in kit.name.casefold():
                matches.append(kit)
            elif include_instruments and any(needle in tag for tag in kit.available_instruments):
                matches.append(kit)
        return matches

    def sort_by_completeness(self, ascending: bool = False) -> List[Kit]:
        return sorted(self.manifest.soundkits, key=lambda kit: kit.completeness, reverse=not ascending)

    def sort_by_name(self, ascending: bool = True) -> List[Kit]:
        return sorted(self.manifest.soundkits, key=lambda kit: collation_key(kit.name), reverse=not ascending)

    def resolve_sample_url(self, kit_id: str, instrument: str) -> Optional[str]:
        kit = self.get_by_id(kit_id)
        if kit is None:
            return None
        relative_path = kit.instruments.get(instrument)
        if not relative_path:
            return None
        if self.base_url:
            return f"{self.base_url}/{self.samples_path}/{relative_path}"
        return f"{self.samples_path}/{relative_path}"

    def get_sample_urls(self, kit_id: str) -> Optional[Dict[str, str]]:
        kit = self.get_by_id(kit_id)
        if kit is None:
            return None
        urls: Dict[str, str] = {}
        for instrument in kit.instruments:
            url = self.resolve_sample_url(kit_id, instrument)
            if url is not None:
                urls[instrument] = url
        return urls


def create_catalog_index(
    manifest: Manifest,
    settings: Optional[Settings] = None,
    *,
    base_url: Optional[str] = None,
    samples_path: Optional[str] = None,
) -> CatalogIndex:
    """Build the id and instrument maps over ``manifest`` in one pass.

    ``base_url`` falls back to the manifest's own base URL, then to none.
    ``samples_path`` falls back to the settings, then to ``"samples"``.
    """

    by_id: Dict[str, Kit] = {}
    by_instrument: Dict[str, List[str]] = {tag: [] for tag in manifest.instruments}
    for kit in manifest.soundkits:
        if kit.id in by_id:
            logger.warning("duplicate_kit_id", id=kit.id, kept=by_id[kit.id].name, skipped=kit.name)
            continue
        by_id[kit.id] = kit
        for tag in kit.available_instruments:
            by_instrument.setdefault(tag, []).append(kit.id)

    if samples_path is None:
        samples_path = settings.samples_path if settings is not None else DEFAULT_SAMPLES_PATH

    return CatalogIndex(
        manifest=manifest,
        base_url=base_url or manifest.base_url or "",
        samples_path=samples_path,
        by_id=MappingProxyType(by_id),
        by_instrument=MappingProxyType({tag: tuple(ids) for tag, ids in by_instrument.items()}),
    )


def load_catalog_index(path: Path, settings: Optional[Settings] = None, **options: Optional[str]) -> CatalogIndex:
    return create_catalog_index(load_manifest(path), settings, **options)


def reload_if_changed(index: CatalogIndex, path: Path) -> CatalogIndex:
    """Return a fresh index when the manifest on disk was regenerated.

    The new index takes its base URL from the new manifest.
    """

    manifest = load_manifest(path)
    if manifest.generated == index.manifest.generated:
        return index
    logger.info("manifest_changed", previous=index.manifest.generated.isoformat(), current=manifest.generated.isoformat())
    return create_catalog_index(manifest, samples_path=index.samples_path)
