"""Fold per-instrument directory listings into kit records.

Every instrument tag owns a subdirectory of the samples root. Each listing is
reduced to a partial ``kit name -> {tag: relative path}`` map on its own, and
the partials are merged by union, so listings can be read in any order (or in
parallel) and still produce the same kits.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..schemas.manifest import Kit
from .parsing import ParseRejection, parse_filename

logger = get_logger(__name__)

HIDDEN_PREFIX = "."

PartialKits = Dict[str, Dict[str, str]]


@dataclass
class DirectoryListing:
    """Filenames found in one instrument subdirectory."""

    instrument: str
    filenames: List[str] = field(default_factory=list)
    missing: bool = False
    error: Optional[str] = None


def collect_directory(
    instrument: str,
    filenames: Iterable[str],
    vocabulary: Collection[str],
    extension: str,
) -> PartialKits:
    """Return the kits contributed by a single instrument subdirectory.

    The path recorded for a kit is ``"<instrument>/<filename>"`` using the
    folder tag and the filename exactly as found. When several files resolve
    to the same kit, the smallest filename wins.
    """

    chosen: Dict[str, str] = {}
    for filename in sorted(filenames):
        if filename.startswith(HIDDEN_PREFIX):
            logger.debug("hidden_file_skipped", instrument=instrument, filename=filename)
            continue

        parsed = parse_filename(filename, vocabulary, extension)
        if isinstance(parsed, ParseRejection):
            logger.warning(
                "filename_rejected",
                instrument=instrument,
                filename=filename,
                reason=parsed.reason.value,
                detail=parsed.describe(),
            )
            continue

        if parsed.instrument != instrument:
            logger.warning(
                "instrument_folder_mismatch",
                folder=instrument,
                tagged=parsed.instrument,
                filename=filename,
            )

        kept = chosen.get(parsed.kit_name)
        if kept is not None:
            logger.warning(
                "duplicate_kit_sample",
                kit=parsed.kit_name,
                instrument=instrument,
                kept=kept,
                skipped=filename,
            )
            continue
        chosen[parsed.kit_name] = filename

    return {kit_name: {instrument: f"{instrument}/{filename}"} for kit_name, filename in chosen.items()}


def merge_partials(partials: Iterable[Mapping[str, Mapping[str, str]]]) -> PartialKits:
    """Union partial kit maps; entries for different instruments all survive."""

    merged: PartialKits = {}
    for partial in partials:
        for kit_name, entries in partial.items():
            target = merged.setdefault(kit_name, {})
            for instrument, path in entries.items():
                current = target.get(instrument)
                target[instrument] = path if current is None else min(current, path)
    return merged


def finalize_kits(merged: Mapping[str, Mapping[str, str]], vocabulary_size: int) -> Dict[str, Kit]:
    return {
        kit_name: Kit.from_instruments(kit_name, merged[kit_name], vocabulary_size)
        for kit_name in sorted(merged)
    }


def aggregate(
    listings: Mapping[str, Iterable[str]],
    vocabulary: Sequence[str],
    extension: str,
) -> Dict[str, Kit]:
    """Build ``kit name -> Kit`` from ``instrument tag -> filenames`` listings.

    Tags absent from ``listings`` contribute nothing. Listings for tags outside
    the vocabulary are ignored.
    """

    partials = [
        collect_directory(instrument, listings.get(instrument, ()), vocabulary, extension)
        for instrument in vocabulary
    ]
    return finalize_kits(merge_partials(partials), len(vocabulary))


def list_instrument_dir(samples_dir: Path, instrument: str) -> DirectoryListing:
    path = samples_dir / instrument
    try:
        with os.scandir(path) as entries:
            filenames = [entry.name for entry in entries if entry.is_file()]
    except FileNotFoundError:
        logger.debug("instrument_dir_missing", instrument=instrument, path=str(path))
        return DirectoryListing(instrument=instrument, missing=True)
    except OSError as exc:
        logger.error("instrument_dir_unreadable", instrument=instrument, path=str(path), error=str(exc))
        return DirectoryListing(instrument=instrument, error=str(exc))
    return DirectoryListing(instrument=instrument, filenames=filenames)


def scan_samples_dir(
    samples_dir: Path,
    vocabulary: Sequence[str],
    workers: int = 1,
) -> Dict[str, DirectoryListing]:
    """List every instrument subdirectory, optionally on a thread pool."""

    if not samples_dir.is_dir():
        logger.warning("samples_dir_missing", path=str(samples_dir))

    listings: Dict[str, DirectoryListing] = {}
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(list_instrument_dir, samples_dir, tag) for tag in vocabulary]
            for future in as_completed(futures):
                listing = future.result()
                listings[listing.instrument] = listing
    else:
        for tag in vocabulary:
            listings[tag] = list_instrument_dir(samples_dir, tag)
    return listings


def scan_kits(
    samples_dir: Path,
    vocabulary: Sequence[str],
    extension: str,
    workers: int = 1,
) -> Dict[str, Kit]:
    """Scan ``samples_dir`` and aggregate the kits it holds."""

    listings = scan_samples_dir(samples_dir, vocabulary, workers=workers)
    return aggregate(
        {tag: listing.filenames for tag, listing in listings.items()},
        vocabulary,
        extension,
    )
