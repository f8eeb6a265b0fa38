from __future__ import annotations

import datetime as _dt
import json
import os
import sys
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from soundkit_catalog.errors import ManifestLoadError, ManifestWriteError, SlugCollisionError
from soundkit_catalog.schemas.manifest import Kit, slugify
from soundkit_catalog.services.manifest import (
    build_manifest,
    generate_manifest,
    load_manifest,
    save_manifest,
)

GENERATED = _dt.datetime(2024, 5, 1, 12, 30, tzinfo=_dt.timezone.utc)


def _kit(name, tags, vocabulary):
    return Kit.from_instruments(name, {tag: f"{tag}/{name} - {tag}.wav" for tag in tags}, len(vocabulary))


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Batman Begins", "batman-begins"),
        ("  Lo-Fi  Dust!! ", "lo-fi-dust"),
        ("Weird - Kit", "weird-kit"),
        ("808 & Co.", "808-co"),
        ("Café Noir", "caf-noir"),
        ("!!!", "kit"),
        ("", "kit"),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_build_manifest_document(vocabulary):
    kits = [_kit("Batman Begins", ["kick", "snare"], vocabulary)]

    manifest = build_manifest(kits, vocabulary, "https://example.test/kits", "1.0.0", generated=GENERATED)
    payload = json.loads(manifest.to_json())

    assert payload["version"] == "1.0.0"
    assert payload["generated"].startswith("2024-05-01T12:30:00")
    assert payload["totalSoundkits"] == 1
    assert payload["instruments"] == vocabulary
    assert payload["baseUrl"] == "https://example.test/kits"
    assert payload["soundkits"][0] == {
        "id": "batman-begins",
        "name": "Batman Begins",
        "instruments": {
            "kick": "kick/Batman Begins - kick.wav",
            "snare": "snare/Batman Begins - snare.wav",
        },
        "availableInstruments": ["kick", "snare"],
        "completeness": 25.0,
    }
    assert payload["statistics"]["totalFiles"] == 2
    assert payload["statistics"]["instrumentCoverage"]["kick"] == 1


def test_empty_manifest(vocabulary):
    manifest = build_manifest([], vocabulary, None, "1.0.0")
    payload = json.loads(manifest.to_json())

    assert payload["totalSoundkits"] == 0
    assert payload["soundkits"] == []
    assert payload["baseUrl"] is None
    assert payload["statistics"]["averageCompleteness"] == 0
    assert set(payload["statistics"]["instrumentCoverage"].values()) == {0}


def test_kits_sorted_ignoring_accents_and_case(vocabulary):
    names = ["Zulu", "Écho Chamber", "alpha", "Echo Base", "bravo"]
    kits = [_kit(name, ["kick"], vocabulary) for name in names]

    manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    assert [kit.name for kit in manifest.soundkits] == ["alpha", "bravo", "Echo Base", "Écho Chamber", "Zulu"]


def test_kits_sorted_punctuation_first_and_lowercase_before_uppercase(vocabulary):
    names = ["Night Drive", "night drive", "~Tilde", "_Under", "9lives", "alpha"]
    kits = [_kit(name, ["kick"], vocabulary) for name in names]

    manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    assert [kit.name for kit in manifest.soundkits] == [
        "_Under",
        "~Tilde",
        "9lives",
        "alpha",
        "night drive",
        "Night Drive",
    ]


def test_names_without_slug_characters_get_fallback_ids(vocabulary):
    kits = [_kit(name, ["kick"], vocabulary) for name in ["!!!", "???"]]

    manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    assert [kit.id for kit in manifest.soundkits] == ["kit", "kit-2"]


def test_slug_collisions_get_suffixes(vocabulary):
    kits = [_kit(name, ["kick"], vocabulary) for name in ["Boom Bap", "Boom-Bap", "boom bap!"]]

    with capture_logs() as logs:
        manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    ids = [kit.id for kit in manifest.soundkits]
    assert sorted(ids) == ["boom-bap", "boom-bap-2", "boom-bap-3"]
    assert len(set(ids)) == len(ids)
    assert any(entry["event"] == "kit_id_collision" for entry in logs)


def test_suffix_skips_ids_already_taken(vocabulary):
    kits = [_kit(name, ["kick"], vocabulary) for name in ["Boom Bap", "Boom-Bap", "Boom Bap 2"]]

    manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    ids = {kit.name: kit.id for kit in manifest.soundkits}
    assert ids["Boom Bap 2"] == "boom-bap-2"
    assert len(set(ids.values())) == 3


def test_slug_collisions_can_fail_the_build(vocabulary):
    kits = [_kit(name, ["kick"], vocabulary) for name in ["Boom Bap", "boom-bap"]]

    with pytest.raises(SlugCollisionError) as excinfo:
        build_manifest(kits, vocabulary, None, "1.0.0", collision_policy="fail")

    assert excinfo.value.collisions == {"boom-bap": ["Boom Bap", "boom-bap"]}


def test_case_variant_names_are_reported_not_merged(vocabulary):
    kits = [_kit("Night Drive", ["kick"], vocabulary), _kit("night drive", ["snare"], vocabulary)]

    with capture_logs() as logs:
        manifest = build_manifest(kits, vocabulary, None, "1.0.0")

    assert manifest.total_soundkits == 2
    warnings = [entry for entry in logs if entry["event"] == "kit_name_case_variants"]
    assert warnings and warnings[0]["names"] == ["Night Drive", "night drive"]


def test_save_and_load_round_trip(tmp_path, vocabulary):
    manifest = build_manifest(
        [_kit("Batman Begins", ["kick", "snare"], vocabulary), _kit("Full", vocabulary, vocabulary)],
        vocabulary,
        "https://example.test",
        "1.0.0",
        generated=GENERATED,
    )
    path = tmp_path / "manifest.json"

    save_manifest(manifest, path)
    loaded = load_manifest(path)

    assert loaded == manifest
    assert path.read_text(encoding="utf-8").endswith("}\n")


def test_save_replaces_previous_document(tmp_path, vocabulary):
    path = tmp_path / "manifest.json"
    path.write_text('{"stale": true}', encoding="utf-8")

    save_manifest(build_manifest([], vocabulary, None, "2.0.0"), path)

    assert json.loads(path.read_text(encoding="utf-8"))["version"] == "2.0.0"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["manifest.json"]


def test_save_failure_is_a_hard_error(tmp_path, vocabulary):
    target = tmp_path / "manifest.json"
    target.mkdir()
    (target / "keep").write_text("x", encoding="utf-8")

    with pytest.raises(ManifestWriteError):
        save_manifest(build_manifest([], vocabulary, None, "1.0.0"), target)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["manifest.json"]


def test_unencodable_manifest_is_a_write_error(tmp_path, vocabulary):
    target = tmp_path / "manifest.json"
    manifest = build_manifest([_kit("Caf\udce9", ["kick"], vocabulary)], vocabulary, None, "1.0.0")

    with pytest.raises(ManifestWriteError):
        save_manifest(manifest, target)

    assert list(tmp_path.iterdir()) == []


def test_load_missing_manifest(tmp_path):
    with pytest.raises(ManifestLoadError):
        load_manifest(tmp_path / "missing.json")


def test_load_rejects_malformed_json(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ManifestLoadError):
        load_manifest(path)


def test_load_rejects_inconsistent_counts(tmp_path, vocabulary):
    payload = json.loads(build_manifest([_kit("A", ["kick"], vocabulary)], vocabulary, None, "1.0.0").to_json())
    payload["totalSoundkits"] = 3
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ManifestLoadError):
        load_manifest(path)


def test_load_rejects_mismatched_instrument_entries(tmp_path, vocabulary):
    payload = json.loads(build_manifest([_kit("A", ["kick"], vocabulary)], vocabulary, None, "1.0.0").to_json())
    payload["soundkits"][0]["availableInstruments"] = ["kick", "snare"]
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ManifestLoadError):
        load_manifest(path)


def test_generate_manifest_end_to_end(settings, write_samples):
    write_samples(
        {
            "kick": ["Batman Begins - kick.wav", "Odd File.wav"],
            "snare": ["Batman Begins - snare.wav"],
        }
    )

    manifest = generate_manifest(settings)

    assert Path(settings.output_path).exists()
    assert manifest.total_soundkits == 1
    assert manifest.soundkits[0].id == "batman-begins"
    assert manifest.soundkits[0].completeness == 25
    assert load_manifest(settings.output_path) == manifest


@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem that accepts arbitrary bytes")
def test_generate_skips_filenames_that_are_not_utf8(settings, write_samples):
    write_samples({"kick": ["Good - kick.wav"]})
    raw_dir = os.fsencode(settings.samples_dir / "kick")
    with open(os.path.join(raw_dir, b"Caf\xe9 - kick.wav"), "wb") as handle:
        handle.write(b"RIFF")

    with capture_logs() as logs:
        manifest = generate_manifest(settings)

    assert [kit.name for kit in manifest.soundkits] == ["Good"]
    assert load_manifest(settings.output_path) == manifest
    rejected = [entry for entry in logs if entry["event"] == "filename_rejected"]
    assert [entry["reason"] for entry in rejected] == ["undecodable_name"]


def test_generate_twice_is_idempotent(settings, write_samples):
    write_samples({tag: [f"Alpha - {tag}.wav", f"Beta - {tag}.wav"] for tag in ("kick", "clap", "bell")})

    first = json.loads(generate_manifest(settings).to_json())
    second = json.loads(generate_manifest(settings).to_json())
    first.pop("generated")
    second.pop("generated")

    assert first == second


def test_generate_with_no_samples_writes_empty_manifest(settings):
    manifest = generate_manifest(settings)

    assert manifest.total_soundkits == 0
    assert manifest.statistics.average_completeness == 0
    assert load_manifest(settings.output_path).soundkits == []
