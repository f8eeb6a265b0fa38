"""Split sample filenames of the form ``"<kit name> - <instrument>.<ext>"``."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Collection, Optional, Union

SEPARATOR = " - "


class RejectReason(str, Enum):
    """Why a filename did not yield a kit entry."""

    WRONG_EXTENSION = "wrong_extension"
    MISSING_SEPARATOR = "missing_separator"
    UNKNOWN_INSTRUMENT = "unknown_instrument"
    UNDECODABLE_NAME = "undecodable_name"


@dataclass(frozen=True)
class ParsedFilename:
    kit_name: str
    instrument: str


@dataclass(frozen=True)
class ParseRejection:
    filename: str
    reason: RejectReason
    instrument: Optional[str] = None

    def describe(self) -> str:
        if self.reason is RejectReason.UNKNOWN_INSTRUMENT:
            return f"unknown instrument {self.instrument!r} in {self.filename!r}"
        if self.reason is RejectReason.MISSING_SEPARATOR:
            return f"no {SEPARATOR!r} separator in {self.filename!r}"
        if self.reason is RejectReason.UNDECODABLE_NAME:
            return f"name of {self.filename!r} is not valid UTF-8"
        return f"unexpected extension on {self.filename!r}"


ParseResult = Union[ParsedFilename, ParseRejection]


def parse_filename(filename: str, vocabulary: Collection[str], extension: str) -> ParseResult:
    """Return the kit name and instrument tag encoded in ``filename``.

    The extension check is an exact, case-sensitive suffix match. The split
    happens at the *last* separator so kit names may contain ``" - "``
    themselves (``"Weird - Kit - hihat.wav"`` -> ``"Weird - Kit"``/``"hihat"``).
    Names that cannot be encoded as UTF-8 (undecodable bytes surface as
    surrogates on POSIX) are rejected since they cannot be written to the
    manifest. Rejections are returned, never raised.
    """

    try:
        filename.encode("utf-8")
    except UnicodeEncodeError:
        return ParseRejection(filename, RejectReason.UNDECODABLE_NAME)

    if not filename.endswith(extension):
        return ParseRejection(filename, RejectReason.WRONG_EXTENSION)

    stem = filename[: len(filename) - len(extension)]
    index = stem.rfind(SEPARATOR)
    if index == -1:
        return ParseRejection(filename, RejectReason.MISSING_SEPARATOR)

    kit_name = stem[:index].strip()
    instrument = stem[index + len(SEPARATOR):].strip().lower()
    if instrument not in vocabulary:
        return ParseRejection(filename, RejectReason.UNKNOWN_INSTRUMENT, instrument=instrument)

    return ParsedFilename(kit_name=kit_name, instrument=instrument)
