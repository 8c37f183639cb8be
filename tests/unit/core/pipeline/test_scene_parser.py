from __future__ import annotations

"""
Unit tests for Description Parsing and Mesh Fetching.

Focuses on missing-asset resilience: a mesh that cannot be fetched turns
into a placeholder with one ASSET_NOT_FOUND warning while everything else
still loads.
"""

from pathlib import Path
from typing import Dict
from unittest.mock import patch

import pytest

from urdf_assembler.core.pipeline.scene import MeshFetcher, mesh_format, parse_description
from urdf_assembler.domain.errors import LoadErrorKind, ParseFailure
from urdf_assembler.domain.scene_models import MeshAsset, PlaceholderNode

TWO_LINK_ROBOT = """<robot name="duo">
  <link name="base">
    <visual><geometry><mesh filename="https://host/base.stl"/></geometry></visual>
    <collision><geometry><mesh filename="https://host/base_collision.stl"/></geometry></collision>
  </link>
  <link name="tool">
    <visual><geometry><mesh filename="https://host/missing.dae"/></geometry></visual>
  </link>
  <joint name="wrist" type="revolute">
    <parent link="base"/>
    <child link="tool"/>
  </joint>
</robot>
"""


def _identity(ref: str) -> str:
    return ref


@pytest.fixture
def fetcher() -> MeshFetcher:
    return MeshFetcher({"probe_remote_assets": True})


def test_missing_asset_becomes_placeholder(fetcher: MeshFetcher) -> None:
    """TC-01: Verify one missing mesh yields one placeholder and one warning."""
    exists: Dict[str, bool] = {
        "https://host/base.stl": True,
        "https://host/missing.dae": False,
    }

    with patch("urdf_assembler.infra.network.probe_exists", side_effect=lambda url: exists[url]), \
            patch("urdf_assembler.infra.network.fetch_bytes", return_value=b"solid") as mock_fetch:
        scene = parse_description(TWO_LINK_ROBOT, _identity, fetcher)

    assert list(scene.links) == ["base", "tool"]
    assert isinstance(scene.links["base"].visuals[0], MeshAsset)
    assert isinstance(scene.links["tool"].visuals[0], PlaceholderNode)
    assert [w.kind for w in scene.warnings] == [LoadErrorKind.ASSET_NOT_FOUND]
    assert scene.warnings[0].path == "https://host/missing.dae"
    mock_fetch.assert_called_once()


def test_structure_is_parsed(fetcher: MeshFetcher) -> None:
    """TC-02: Verify joints and the root link are exposed."""
    with patch("urdf_assembler.infra.network.probe_exists", return_value=True), \
            patch("urdf_assembler.infra.network.fetch_bytes", return_value=b"x"):
        scene = parse_description(TWO_LINK_ROBOT, _identity, fetcher)

    joint = scene.joints["wrist"]
    assert (joint.joint_type, joint.parent, joint.child) == ("revolute", "base", "tool")
    assert scene.root_link() == "base"
    assert scene.name == "duo"


def test_collision_meshes_are_skipped_by_default(fetcher: MeshFetcher) -> None:
    """TC-03: Verify collision geometry is only loaded on request."""
    with patch("urdf_assembler.infra.network.probe_exists", return_value=True), \
            patch("urdf_assembler.infra.network.fetch_bytes", return_value=b"x"):
        default = parse_description(TWO_LINK_ROBOT, _identity, fetcher)
        with_collision = parse_description(TWO_LINK_ROBOT, _identity, fetcher, load_collision=True)

    assert len(default.meshes()) == 2
    assert len(with_collision.meshes()) == 3


def test_probe_can_be_disabled() -> None:
    """TC-04: Verify no HEAD request is issued when probing is off."""
    fetcher = MeshFetcher({"probe_remote_assets": False})
    with patch("urdf_assembler.infra.network.probe_exists") as mock_probe, \
            patch("urdf_assembler.infra.network.fetch_bytes", return_value=b"x"):
        geometry = fetcher.fetch("https://host/a.stl", "stl")

    mock_probe.assert_not_called()
    assert isinstance(geometry, MeshAsset)


def test_unsupported_format_is_placeholder(fetcher: MeshFetcher) -> None:
    """TC-05: Verify unknown mesh formats are replaced without any I/O."""
    with patch("urdf_assembler.infra.network.probe_exists") as mock_probe:
        geometry = fetcher.fetch("https://host/a.ply", "ply")

    mock_probe.assert_not_called()
    assert isinstance(geometry, PlaceholderNode)
    assert "ply" in geometry.reason


def test_local_handles_are_read(tmp_path: Path, fetcher: MeshFetcher) -> None:
    """TC-06: Verify 'file://' handles and absolute paths are read from disk."""
    mesh = tmp_path / "m.obj"
    mesh.write_bytes(b"v 0 0 0")

    by_uri = fetcher.fetch(mesh.as_uri(), "obj")
    by_path = fetcher.fetch(str(mesh), "obj")
    unreachable = fetcher.fetch("/definitely/not/here.obj", "obj")

    assert isinstance(by_uri, MeshAsset) and by_uri.data == b"v 0 0 0"
    assert isinstance(by_path, MeshAsset)
    assert isinstance(unreachable, PlaceholderNode)


def test_mesh_format() -> None:
    """TC-07: Verify format detection from references and URLs."""
    assert mesh_format("package://bot/meshes/Body.STL") == "stl"
    assert mesh_format("https://host/a.dae?v=2") == "dae"
    assert mesh_format("meshes/noext") == ""


@pytest.mark.parametrize("text", [
    "<robot><link name='a'>",
    "<model name='x'/>",
    "",
])
def test_invalid_description_raises(text: str) -> None:
    """TC-08: Verify malformed text or a non-robot root is a ParseFailure."""
    with pytest.raises(ParseFailure):
        parse_description(text, _identity)
