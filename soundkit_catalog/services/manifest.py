"""Assemble, persist and load the soundkit manifest."""

from __future__ import annotations

import datetime as _dt
import tempfile
import unicodedata
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..config import Settings
from ..errors import ManifestLoadError, ManifestWriteError, SlugCollisionError
from ..logging import get_logger
from ..schemas.manifest import Kit, Manifest, slugify
from .aggregation import scan_kits
from .statistics import summarize

logger = get_logger(__name__)

CollisionPolicy = Literal["suffix", "fail"]


def _primary_weight(ch: str) -> Tuple[int, str]:
    if not ch.isalnum():
        return 0, ch
    return (1 if ch.isdigit() else 2), ch


def collation_key(name: str) -> Tuple[Tuple[Tuple[int, str], ...], str, str, str]:
    """Sort key ordering names the way a reader expects.

    The first level ignores accents and case ("Ébène" sorts with "E") and puts
    punctuation and spaces ahead of digits, digits ahead of letters. Accents
    break ties next, then case with lowercase first ("night drive" before
    "Night Drive"), then the raw text so ties stay stable.
    """

    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    primary = tuple(_primary_weight(ch) for ch in base.casefold())
    return primary, name.casefold(), name.swapcase(), name


def sort_kits(kits: Iterable[Kit]) -> List[Kit]:
    return sorted(kits, key=lambda kit: collation_key(kit.name))


def find_case_variants(kits: Iterable[Kit]) -> Dict[str, List[str]]:
    """Group kit names that only differ by case; such kits are never merged."""

    groups: Dict[str, List[str]] = defaultdict(list)
    for kit in kits:
        groups[kit.name.casefold()].append(kit.name)
    return {key: sorted(names) for key, names in groups.items() if len(names) > 1}


def find_slug_collisions(kits: Iterable[Kit]) -> Dict[str, List[str]]:
    groups: Dict[str, List[str]] = defaultdict(list)
    for kit in kits:
        groups[slugify(kit.name)].append(kit.name)
    return {slug: names for slug, names in groups.items() if len(names) > 1}


def assign_ids(kits: Sequence[Kit], policy: CollisionPolicy = "suffix") -> List[Kit]:
    """Give every kit a unique id derived from its name.

    Kits must already be in manifest order. Under the ``suffix`` policy the
    first kit keeps the plain slug and later ones get ``-2``, ``-3``...
    """

    collisions = find_slug_collisions(kits)
    if not collisions:
        return [kit if kit.id == slugify(kit.name) else kit.model_copy(update={"id": slugify(kit.name)}) for kit in kits]

    if policy == "fail":
        raise SlugCollisionError(collisions)

    for slug, names in sorted(collisions.items()):
        logger.warning("kit_id_collision", id=slug, names=names)

    taken = {slugify(kit.name) for kit in kits}
    seen: Dict[str, int] = {}
    result: List[Kit] = []
    for kit in kits:
        base = slugify(kit.name)
        if base not in seen:
            seen[base] = 1
            kit_id = base
        else:
            counter = seen[base]
            while True:
                counter += 1
                kit_id = f"{base}-{counter}"
                if kit_id not in taken:
                    break
            seen[base] = counter
            taken.add(kit_id)
        result.append(kit if kit.id == kit_id else kit.model_copy(update={"id": kit_id}))
    return result


def build_manifest(
    kits: Iterable[Kit],
    vocabulary: Sequence[str],
    base_url: Optional[str],
    version: str,
    *,
    generated: Optional[_dt.datetime] = None,
    collision_policy: CollisionPolicy = "suffix",
) -> Manifest:
    """Assemble the manifest document from an aggregated kit set."""

    ordered = sort_kits(kits)
    for names in find_case_variants(ordered).values():
        logger.warning("kit_name_case_variants", names=names)
    ordered = assign_ids(ordered, collision_policy)

    return Manifest(
        version=version,
        generated=generated or _dt.datetime.now(tz=_dt.timezone.utc),
        total_soundkits=len(ordered),
        instruments=list(vocabulary),
        base_url=base_url or None,
        soundkits=ordered,
        statistics=summarize(ordered, vocabulary),
    )


def save_manifest(manifest: Manifest, path: Path) -> Path:
    """Replace the document at ``path`` in one step."""

    path = Path(path)
    temp_path: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(manifest.to_json())
            tmp.write("\n")
        temp_path.replace(path)
    except (OSError, ValueError) as exc:
        # ValueError covers text the JSON serializer cannot encode.
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise ManifestWriteError(path, str(exc)) from exc

    logger.info("manifest_saved", path=str(path), soundkits=manifest.total_soundkits)
    return path


def load_manifest(path: Path) -> Manifest:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestLoadError(path, str(exc)) from exc

    try:
        return Manifest.model_validate_json(raw)
    except ValidationError as exc:
        raise ManifestLoadError(path, str(exc)) from exc


def generate_manifest(settings: Settings, *, output_path: Optional[Path] = None) -> Manifest:
    """Run one full generation: scan, build and overwrite the manifest."""

    logger.info("scan_started", samples_dir=str(settings.samples_dir), instruments=settings.instruments)
    kits = scan_kits(
        settings.samples_dir,
        settings.instruments,
        settings.file_extension,
        workers=settings.scan_workers,
    )
    if not kits:
        logger.warning("no_soundkits_found", samples_dir=str(settings.samples_dir))

    manifest = build_manifest(
        kits.values(),
        settings.instruments,
        settings.base_url,
        settings.manifest_version,
        collision_policy=settings.slug_collision_policy,
    )
    save_manifest(manifest, output_path or settings.output_path)

    stats = manifest.statistics
    logger.info(
        "scan_complete",
        soundkits=manifest.total_soundkits,
        complete=stats.complete_soundkits,
        average_completeness=round(stats.average_completeness, 1),
        files=stats.total_files,
    )
    return manifest
