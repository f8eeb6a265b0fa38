"""Pydantic schemas for the soundkit manifest document."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")
FALLBACK_SLUG = "kit"


def slugify(name: str) -> str:
    """Return the URL-safe id for a kit name ("Batman Begins" -> "batman-begins").

    Names without any ASCII letter or digit map to ``FALLBACK_SLUG``.
    """

    return _SLUG_SEPARATORS.sub("-", name.lower()).strip("-") or FALLBACK_SLUG


def completeness_for(available: int, vocabulary_size: int) -> float:
    if vocabulary_size <= 0:
        return 0.0
    return available / vocabulary_size * 100


class ManifestModel(BaseModel):
    """Immutable model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Kit(ManifestModel):
    id: str
    name: str
    instruments: Dict[str, str]
    available_instruments: List[str]
    completeness: float = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _check_instruments(self) -> "Kit":
        if self.available_instruments != sorted(set(self.available_instruments)):
            raise ValueError(f"availableInstruments of {self.name!r} must be sorted and unique")
        if set(self.instruments) != set(self.available_instruments):
            raise ValueError(f"instruments and availableInstruments disagree for kit {self.name!r}")
        return self

    @classmethod
    def from_instruments(
        cls,
        name: str,
        instruments: Mapping[str, str],
        vocabulary_size: int,
        kit_id: Optional[str] = None,
    ) -> "Kit":
        """Build a kit, deriving its id, sorted tags and completeness."""

        available = sorted(set(instruments))
        return cls(
            id=slugify(name) if kit_id is None else kit_id,
            name=name,
            instruments={tag: instruments[tag] for tag in available},
            available_instruments=available,
            completeness=completeness_for(len(available), vocabulary_size),
        )

    @property
    def is_complete(self) -> bool:
        return self.completeness == 100


class Statistics(ManifestModel):
    total_files: int = Field(default=0, ge=0)
    instrument_coverage: Dict[str, int] = Field(default_factory=dict)
    complete_soundkits: int = Field(default=0, ge=0)
    average_completeness: float = Field(default=0.0, ge=0, le=100)


class Manifest(ManifestModel):
    """Top-level document describing the whole kit collection."""

    version: str
    generated: datetime
    total_soundkits: int = Field(ge=0)
    instruments: List[str]
    base_url: Optional[str] = None
    soundkits: List[Kit] = Field(default_factory=list)
    statistics: Statistics

    @model_validator(mode="after")
    def _check_consistency(self) -> "Manifest":
        if self.total_soundkits != len(self.soundkits):
            raise ValueError(
                f"totalSoundkits is {self.total_soundkits} but {len(self.soundkits)} soundkits are listed"
            )
        vocabulary = set(self.instruments)
        for kit in self.soundkits:
            unknown = set(kit.available_instruments) - vocabulary
            if unknown:
                raise ValueError(f"kit {kit.name!r} uses instruments outside the vocabulary: {sorted(unknown)}")
            expected = completeness_for(len(kit.available_instruments), len(self.instruments))
            if not math.isclose(kit.completeness, expected, abs_tol=1e-9):
                raise ValueError(f"kit {kit.name!r} completeness {kit.completeness} != {expected}")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
