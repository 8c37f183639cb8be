from __future__ import annotations

"""
Unit tests for the Sample Manifest Service.

Verifies discovery (static manifest first, API listing as fallback) and
the generation of the static manifest from a samples directory.
"""

import json
from pathlib import Path
from typing import Any, Optional
from unittest.mock import patch

import pytest

from urdf_assembler.core.services.manifest import (
    SampleMode,
    collect_manifest_entries,
    discover_samples,
    generate_manifest,
)

# -----------------------------------------------------------------------------
# DISCOVERY
# -----------------------------------------------------------------------------

def _serve(listings: dict):
    def fake_fetch_json(url: str, timeout: float = 10, require_json_content_type: bool = False) -> Optional[Any]:
        return listings.get(url)
    return fake_fetch_json


def test_static_manifest_is_preferred() -> None:
    """TC-01: Verify a valid files.json selects static mode."""
    listings = {
        "http://host/samples/files.json": ["bot/urdf/bot.urdf", "arm_main.xacro"],
        "http://host/api/samples": ["ignored.urdf"],
    }
    with patch("urdf_assembler.infra.network.fetch_json", side_effect=_serve(listings)) as mock_fetch:
        catalog = discover_samples("http://host/samples/")

    assert catalog.mode is SampleMode.STATIC
    assert catalog.static_mode
    assert catalog.files == ["bot/urdf/bot.urdf", "arm_main.xacro"]
    mock_fetch.assert_called_once()
    assert mock_fetch.call_args.kwargs["require_json_content_type"] is True


def test_api_listing_fallback() -> None:
    """TC-02: Verify the API listing is used when no static manifest exists."""
    listings = {"http://host/api/samples": ["a.urdf", "", 3]}
    with patch("urdf_assembler.infra.network.fetch_json", side_effect=_serve(listings)):
        catalog = discover_samples("http://host/samples/")

    assert catalog.mode is SampleMode.API
    assert not catalog.static_mode
    assert catalog.files == ["a.urdf"]


def test_non_list_manifest_is_ignored() -> None:
    """TC-03: Verify a JSON object instead of an array is not a manifest."""
    listings = {"http://host/files.json": {"files": ["a.urdf"]}}
    with patch("urdf_assembler.infra.network.fetch_json", side_effect=_serve(listings)):
        catalog = discover_samples("http://host/")

    assert catalog.mode is SampleMode.NONE
    assert catalog.files == []


def test_custom_manifest_name_and_api_path() -> None:
    """TC-04: Verify configured names are honoured."""
    listings = {"http://host/v2/list": ["x.xacro"]}
    config = {"manifest_filename": "index.json", "samples_api_path": "/v2/list"}
    with patch("urdf_assembler.infra.network.fetch_json", side_effect=_serve(listings)) as mock_fetch:
        catalog = discover_samples("http://host/", config)

    assert catalog.mode is SampleMode.API
    assert mock_fetch.call_args_list[0].args[0] == "http://host/index.json"

# -----------------------------------------------------------------------------
# GENERATION
# -----------------------------------------------------------------------------

@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    (root / "bot" / "urdf").mkdir(parents=True)
    (root / "bot" / "meshes").mkdir()
    (root / "solo.xacro").write_text("<robot/>", encoding="utf-8")
    (root / "bot" / "urdf" / "bot.urdf").write_text("<robot/>", encoding="utf-8")
    (root / "bot" / "urdf" / "bot_main.xacro").write_text("<robot/>", encoding="utf-8")
    (root / "bot" / "urdf" / "parts.xacro").write_text("<robot/>", encoding="utf-8")
    (root / "bot" / "meshes" / "body.stl").write_bytes(b"solid")
    return root


def test_collect_manifest_entries(public_dir: Path) -> None:
    """TC-05: Verify nested macro fragments are left out of the listing."""
    entries = collect_manifest_entries(str(public_dir), max_workers=2)
    assert entries == ["bot/urdf/bot.urdf", "bot/urdf/bot_main.xacro", "solo.xacro"]


def test_generate_manifest_writes_file(public_dir: Path) -> None:
    """TC-06: Verify files.json is written next to the samples."""
    entries = generate_manifest(str(public_dir))

    manifest = public_dir / "files.json"
    assert manifest.exists()
    assert json.loads(manifest.read_text(encoding="utf-8")) == entries
    assert "bot/urdf/parts.xacro" not in entries


def test_generate_manifest_custom_output(public_dir: Path, tmp_path: Path) -> None:
    """TC-07: Verify an explicit output path is used verbatim."""
    target = tmp_path / "out.json"
    generate_manifest(str(public_dir), output_path=str(target))

    assert target.exists()
    assert not (public_dir / "files.json").exists()


def test_generate_manifest_rejects_missing_dir(tmp_path: Path) -> None:
    """TC-08: Verify a missing samples directory raises."""
    with pytest.raises(NotADirectoryError):
        generate_manifest(str(tmp_path / "missing"))
