from __future__ import annotations

"""
FileSystem Infrastructure Layer.

OS-facing helpers: where persistent data lives on each platform, how user
supplied paths are expanded, and the private scratch areas in which
in-memory assets are materialised so they can be addressed as 'file://'
handles.
"""

import os
import tempfile
from typing import Optional, Tuple

APP_DIR_NAME = "URDFAssembler"
UNIX_APP_DIR_NAME = ".urdf_assembler"
HANDLE_DIR_PREFIX = "urdf_assembler_"

# -----------------------------------------------------------------------------
# LOCATIONS
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Directory holding config.json and the persistent log.

    Windows uses %LOCALAPPDATA% (or %APPDATA%) / URDFAssembler; every other
    platform uses ~/.urdf_assembler. The directory is created on demand; a
    failure to create it is ignored here and surfaces on first write.

    Returns:
        str: Absolute path of the data directory.
    """
    base = None
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")

    if base:
        data_dir = os.path.join(base, APP_DIR_NAME)
    else:
        data_dir = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(data_dir, exist_ok=True)
    except OSError:
        pass
    return os.path.abspath(data_dir)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Turn a user-typed path into an absolute one.

    '~' and environment variables are expanded; a blank value selects
    fallback instead.
    """
    raw = (path or "").strip() or fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(raw)))


def to_posix(rel_path: str) -> str:
    """Convert an OS-native relative path into forward-slash form."""
    return rel_path.replace(os.sep, "/")


def safe_mkdir(path: str) -> Tuple[bool, Optional[str]]:
    """
    Create a directory tree, reporting failure instead of raising.

    Returns:
        Tuple[bool, Optional[str]]: (created or already present, error text).
    """
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        return False, str(e)
    return True, None

# -----------------------------------------------------------------------------
# SCRATCH AREAS
# -----------------------------------------------------------------------------

def create_scratch_dir() -> tempfile.TemporaryDirectory:
    """
    Allocate a private temporary directory for materialised assets.

    The caller owns the returned object and must call 'cleanup()' once.
    """
    return tempfile.TemporaryDirectory(prefix=HANDLE_DIR_PREFIX)


def write_scratch_file(scratch_root: str, rel_path: str, data: bytes) -> str:
    """
    Persist a byte buffer under the scratch root, mirroring its relative path.

    Args:
        scratch_root: Directory owned by the caller.
        rel_path: Forward-slash relative path (already normalized).
        data: File content.

    Returns:
        str: Absolute path of the written file.
    """
    target = os.path.join(scratch_root, *rel_path.split("/"))
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, "wb") as f:
        f.write(data)
    return target
