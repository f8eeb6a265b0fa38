"""Command line entry point for generating and inspecting the soundkit manifest.

Example usage::

    soundkits generate --samples-dir samples --output manifest.json
    soundkits summary --manifest manifest.json
    soundkits search "batman"
    soundkits show batman-begins
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .config import Settings, get_settings
from .errors import SoundkitCatalogError
from .logging import configure_logging
from .schemas.manifest import Kit, Manifest
from .services.catalog import create_catalog_index
from .services.manifest import generate_manifest, load_manifest


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="soundkits", description="Soundkit manifest tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Scan the samples folders and rewrite the manifest")
    generate.add_argument("--samples-dir", type=Path, default=None, help="Samples root (default: from settings)")
    generate.add_argument("--output", type=Path, default=None, help="Manifest path to write (default: from settings)")
    generate.add_argument("--base-url", default=None, help="Public base URL recorded in the manifest")
    generate.add_argument("--workers", type=int, default=None, help="Threads used to list instrument folders")

    summary = subparsers.add_parser("summary", help="Print statistics of an existing manifest")
    summary.add_argument("--manifest", type=Path, default=None, help="Manifest to read (default: from settings)")

    search = subparsers.add_parser("search", help="List kits whose name contains QUERY")
    search.add_argument("query")
    search.add_argument("--manifest", type=Path, default=None)
    search.add_argument(
        "--instruments",
        action="store_true",
        help="Also match kits by instrument tag",
    )
    search.add_argument(
        "--filter",
        choices=("all", "complete", "incomplete"),
        default="all",
        help="Restrict results by completeness (default: all)",
    )

    show = subparsers.add_parser("show", help="Print the sample URLs of one kit")
    show.add_argument("kit_id")
    show.add_argument("--manifest", type=Path, default=None)

    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates: Dict[str, Any] = {}
    if getattr(args, "samples_dir", None) is not None:
        updates["samples_dir"] = args.samples_dir
    if getattr(args, "output", None) is not None:
        updates["output_path"] = args.output
    if getattr(args, "base_url", None) is not None:
        updates["base_url"] = args.base_url or None
    if getattr(args, "workers", None) is not None:
        updates["scan_workers"] = max(1, args.workers)
    if getattr(args, "manifest", None) is not None:
        updates["output_path"] = args.manifest
    return settings.model_copy(update=updates) if updates else settings


def _print_summary(manifest: Manifest) -> None:
    stats = manifest.statistics
    print("Summary:")
    print(f"   Total soundkits: {manifest.total_soundkits}")
    print(f"   Complete soundkits: {stats.complete_soundkits}")
    print(f"   Average completeness: {stats.average_completeness:.1f}%")
    print(f"   Total files: {stats.total_files}")
    print("   Instrument coverage:")
    for tag in manifest.instruments:
        print(f"     {tag:<8} {stats.instrument_coverage.get(tag, 0)}")


def _format_kit(kit: Kit) -> str:
    return f"{kit.id:<32} {kit.completeness:5.1f}%  {kit.name}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = _apply_overrides(get_settings(), args)
    configure_logging(settings)

    try:
        if args.command == "generate":
            manifest = generate_manifest(settings)
            print(f"Manifest saved to {settings.output_path}")
            _print_summary(manifest)
            return 0

        manifest = load_manifest(settings.output_path)
        if args.command == "summary":
            print(f"Manifest {settings.output_path} (version {manifest.version}, generated {manifest.generated.isoformat()})")
            _print_summary(manifest)
            return 0

        index = create_catalog_index(manifest, settings)
        if args.command == "search":
            allowed = {kit.id for kit in index.filter_by_completeness(args.filter)}
            matches = [kit for kit in index.search(args.query, include_instruments=args.instruments) if kit.id in allowed]
            for kit in matches:
                print(_format_kit(kit))
            print(f"{len(matches)} of {manifest.total_soundkits} soundkits match {args.query!r}")
            return 0

        urls = index.get_sample_urls(args.kit_id)
        if urls is None:
            print(f"Soundkit {args.kit_id!r} not found", file=sys.stderr)
            return 1
        kit = index.get_by_id(args.kit_id)
        print(_format_kit(kit))
        for tag in manifest.instruments:
            print(f"   {tag:<8} {urls.get(tag, '-')}")
        return 0
    except SoundkitCatalogError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
