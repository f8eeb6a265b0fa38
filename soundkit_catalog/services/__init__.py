"""Scanning, manifest and catalog services."""

from .aggregation import aggregate, scan_kits
from .catalog import CatalogIndex, create_catalog_index, load_catalog_index, reload_if_changed
from .manifest import build_manifest, generate_manifest, load_manifest, save_manifest
from .parsing import ParsedFilename, ParseRejection, RejectReason, parse_filename
from .samples import FilesystemFetcher, SampleLoad, load_kit_samples
from .statistics import summarize

__all__ = [
    "CatalogIndex",
    "FilesystemFetcher",
    "ParseRejection",
    "ParsedFilename",
    "RejectReason",
    "SampleLoad",
    "aggregate",
    "build_manifest",
    "create_catalog_index",
    "generate_manifest",
    "load_catalog_index",
    "load_kit_samples",
    "load_manifest",
    "parse_filename",
    "reload_if_changed",
    "save_manifest",
    "scan_kits",
    "summarize",
]
