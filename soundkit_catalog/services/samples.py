"""Fetch every sample of a kit concurrently.

Each instrument is loaded by its own task. A failing instrument is reported in
its own :class:`SampleLoad` and never cancels or fails the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from ..logging import get_logger
from .catalog import CatalogIndex

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


@dataclass(frozen=True)
class SampleRequest:
    kit_id: str
    instrument: str
    url: str
    relative_path: str


@dataclass(frozen=True)
class SampleLoad:
    instrument: str
    url: str
    data: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


Fetcher = Callable[[SampleRequest], Awaitable[bytes]]


class FilesystemFetcher:
    """Read sample bytes straight from the samples directory."""

    def __init__(self, samples_root: Path) -> None:
        self.samples_root = Path(samples_root)

    async def __call__(self, request: SampleRequest) -> bytes:
        path = self.samples_root / request.relative_path
        return await asyncio.to_thread(path.read_bytes)


async def load_kit_samples(
    index: CatalogIndex,
    kit_id: str,
    fetch: Fetcher,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> Optional[Dict[str, SampleLoad]]:
    """Return ``instrument -> SampleLoad`` for every sample of ``kit_id``.

    Returns ``None`` when the kit is unknown.
    """

    kit = index.get_by_id(kit_id)
    if kit is None:
        return None

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _load(instrument: str) -> SampleLoad:
        url = index.resolve_sample_url(kit_id, instrument) or ""
        request = SampleRequest(
            kit_id=kit_id,
            instrument=instrument,
            url=url,
            relative_path=kit.instruments[instrument],
        )
        async with semaphore:
            try:
                data = await fetch(request)
            except Exception as exc:
                logger.warning("sample_load_failed", kit=kit_id, instrument=instrument, url=url, error=str(exc))
                return SampleLoad(instrument=instrument, url=url, error=str(exc) or type(exc).__name__)
        return SampleLoad(instrument=instrument, url=url, data=data)

    results = await asyncio.gather(*(_load(tag) for tag in kit.available_instruments))
    return {result.instrument: result for result in results}
