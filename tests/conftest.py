"""Pytest fixtures for soundkit_catalog tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable

import pytest

from soundkit_catalog.config import DEFAULT_INSTRUMENTS, Settings


@pytest.fixture()
def vocabulary() -> list[str]:
    return list(DEFAULT_INSTRUMENTS)


@pytest.fixture()
def samples_dir(tmp_path: Path) -> Path:
    root = tmp_path / "samples"
    root.mkdir()
    return root


@pytest.fixture()
def write_samples(samples_dir: Path) -> Callable[[Dict[str, Iterable[str]]], Path]:
    """Create empty sample files as ``{instrument folder: [filenames]}``."""

    def _write(layout: Dict[str, Iterable[str]]) -> Path:
        for folder, filenames in layout.items():
            target = samples_dir / folder
            target.mkdir(parents=True, exist_ok=True)
            for filename in filenames:
                (target / filename).write_bytes(b"RIFF" + filename.encode("utf-8"))
        return samples_dir

    return _write


@pytest.fixture()
def settings(tmp_path: Path, samples_dir: Path) -> Settings:
    return Settings(
        samples_dir=samples_dir,
        output_path=tmp_path / "out" / "manifest.json",
        base_url=None,
        scan_workers=1,
        _env_file=None,
    )
