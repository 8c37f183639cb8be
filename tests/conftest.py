from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures: configuration dictionaries and on-disk robot packages.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_config_dict() -> Dict[str, Any]:
    """
    Return a valid, complete configuration dictionary for testing.

    Mirrors 'urdf_assembler.domain.config.get_default_config', with remote
    probing disabled so no test depends on the network by accident.
    """
    return {
        # Asset addressing
        "static_mode": True,
        "static_base_url": "/",
        "asset_api_prefix": "/api/assets/",

        # Sample hosting
        "samples_base_url": "",
        "samples_api_path": "/api/samples",
        "manifest_filename": "files.json",

        # Resolution heuristics
        "urdf_sibling_heuristic": True,

        # Mesh loading
        "probe_remote_assets": False,
        "load_collision": False,
        "mesh_extensions": ["stl", "dae", "obj"],

        # Discovery
        "description_extensions": [".urdf", ".xacro"],
        "max_workers": 4,

        # Transport
        "request_timeout": 5,
    }


ROBOT_URDF = """<?xml version="1.0"?>
<robot name="arm">
  <link name="base">
    <visual><geometry><mesh filename="meshes/base.stl"/></geometry></visual>
  </link>
  <link name="forearm">
    <visual><geometry><mesh filename="package://arm_pkg/meshes/forearm.dae"/></geometry></visual>
  </link>
  <joint name="elbow" type="revolute">
    <parent link="base"/>
    <child link="forearm"/>
  </joint>
</robot>
"""


@pytest.fixture
def robot_package(tmp_path: Path) -> Path:
    """
    Create a conventional ROS description package on disk.

    Structure:
    /arm_pkg
      /urdf
        robot.urdf
      /meshes
        base.stl
        forearm.dae
    """
    pkg = tmp_path / "arm_pkg"
    (pkg / "urdf").mkdir(parents=True)
    (pkg / "meshes").mkdir()

    (pkg / "urdf" / "robot.urdf").write_text(ROBOT_URDF, encoding="utf-8")
    (pkg / "meshes" / "base.stl").write_bytes(b"solid base\nendsolid base\n")
    (pkg / "meshes" / "forearm.dae").write_bytes(b"<COLLADA/>")
    return pkg


@pytest.fixture
def xacro_package(tmp_path: Path) -> Path:
    """
    Create a macro-based package whose entry document includes fragments.

    Structure:
    /bot
      /urdf
        bot_main.xacro   (includes parts.xacro and $(find bot)/urdf/wheel.xacro)
        parts.xacro
        wheel.xacro
      /meshes
        body.stl
    """
    pkg = tmp_path / "bot"
    (pkg / "urdf").mkdir(parents=True)
    (pkg / "meshes").mkdir()

    (pkg / "urdf" / "bot_main.xacro").write_text(
        '<?xml version="1.0"?>\n'
        '<robot name="bot" xmlns:xacro="http://www.ros.org/wiki/xacro">\n'
        '  <xacro:include filename="parts.xacro"/>\n'
        '  <xacro:include filename="$(find bot)/urdf/wheel.xacro" />\n'
        '</robot>\n',
        encoding="utf-8",
    )
    (pkg / "urdf" / "parts.xacro").write_text(
        '<?xml version="1.0"?>\n'
        '<robot xmlns:xacro="http://www.ros.org/wiki/xacro">\n'
        '  <link name="body">\n'
        '    <visual><geometry><mesh filename="meshes/body.stl"/></geometry></visual>\n'
        '  </link>\n'
        '</robot>\n',
        encoding="utf-8",
    )
    (pkg / "urdf" / "wheel.xacro").write_text(
        "<robot xmlns:xacro='http://www.ros.org/wiki/xacro'>\n"
        '  <link name="wheel"/>\n'
        '  <joint name="axle" type="continuous"><parent link="body"/><child link="wheel"/></joint>\n'
        '</robot>\n',
        encoding="utf-8",
    )
    (pkg / "meshes" / "body.stl").write_bytes(b"solid body\nendsolid body\n")
    return pkg
