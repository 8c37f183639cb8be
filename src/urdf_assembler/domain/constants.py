from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes file-type recognition, URI schemes, well-known remote endpoints
and configuration versioning used across the assembly pipeline.
"""

from typing import List, Tuple

CURRENT_CONFIG_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# FILE TYPES
# -----------------------------------------------------------------------------
URDF_EXTENSION = ".urdf"
XACRO_EXTENSION = ".xacro"
DESCRIPTION_EXTENSIONS: List[str] = [URDF_EXTENSION, XACRO_EXTENSION]

# Mesh formats the scene parser knows how to hand to a geometry loader
MESH_EXTENSIONS: List[str] = ["stl", "dae", "obj"]

# -----------------------------------------------------------------------------
# URI SCHEMES
# -----------------------------------------------------------------------------
PACKAGE_SCHEME = "package://"
REMOTE_PREFIXES: Tuple[str, ...] = ("http://", "https://")
EPHEMERAL_PREFIXES: Tuple[str, ...] = ("file://", "blob:")

# Named path heuristic: meshes of 'pkg/urdf/*.urdf' live in 'pkg/meshes'
URDF_SUBDIR_NAME = "urdf"

# -----------------------------------------------------------------------------
# REMOTE SAMPLE HOSTING
# -----------------------------------------------------------------------------
MANIFEST_FILENAME = "files.json"
SAMPLES_API_PATH = "/api/samples"
ASSET_API_PREFIX = "/api/assets/"
DEFAULT_STATIC_BASE = "/"
