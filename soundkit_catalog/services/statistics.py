"""Collection-wide aggregates derived from the kit set."""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

from ..schemas.manifest import Kit, Statistics


def summarize(kits: Iterable[Kit], vocabulary: Sequence[str]) -> Statistics:
    """Return coverage counts, complete-kit count and mean completeness.

    An empty kit set yields zero counts, a zero entry for every vocabulary tag
    and an average of 0.
    """

    coverage: Dict[str, int] = {tag: 0 for tag in vocabulary}
    total_files = 0
    complete = 0
    completeness_total = 0.0
    kit_count = 0

    for kit in kits:
        kit_count += 1
        for tag in kit.available_instruments:
            coverage[tag] = coverage.get(tag, 0) + 1
            total_files += 1
        if kit.is_complete:
            complete += 1
        completeness_total += kit.completeness

    return Statistics(
        total_files=total_files,
        instrument_coverage=coverage,
        complete_soundkits=complete,
        average_completeness=completeness_total / kit_count if kit_count else 0.0,
    )
