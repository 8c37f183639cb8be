from __future__ import annotations

"""
File Discovery and Index Construction Service.

Builds a VirtualFileIndex from each supported input origin:
1. A single description file (path or in-memory buffer).
2. A directory tree, walked level by level on a thread pool.
3. A pre-assembled hierarchy of relative paths (drag-and-drop style).
4. A remote sample manifest (lazy, no eager walk).

Directory walks join every nested listing before returning, so an index
is only ever handed out complete.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from urdf_assembler.core.resolution.entry import collect_candidates
from urdf_assembler.core.resolution.index import LocalContent, VirtualFileIndex
from urdf_assembler.core.resolution.paths import normalize
from urdf_assembler.domain.errors import NoDescriptionFound
from urdf_assembler.infra.fs import to_posix

logger = logging.getLogger(__name__)

SingleFileInput = Union[str, Tuple[str, bytes]]
HierarchyValue = Union[bytes, str]

# Files and sub-directories found in one directory listing
_Listing = Tuple[List[Tuple[str, str]], List[str]]


# ==============================================================================
# PUBLIC API (INDEX BUILDERS)
# ==============================================================================

def build_from_single_file(
        source: SingleFileInput,
        extensions: Optional[Sequence[str]] = None,
        require_candidates: bool = True,
) -> VirtualFileIndex:
    """
    Index one file under its bare name (no directory prefix).

    Args:
        source: Filesystem path, or a (file name, bytes) pair.
        extensions: Recognized description extensions.
        require_candidates: Raise when the file is not a description.

    Raises:
        NoDescriptionFound: If the file is not a recognized description.
    """
    if isinstance(source, tuple):
        name, data = source
        entry = LocalContent(key=os.path.basename(name), data=data)
    else:
        entry = LocalContent(key=os.path.basename(source), file_path=os.path.abspath(source))

    index = VirtualFileIndex({entry.key: entry})
    _ensure_candidates(index, extensions, require_candidates, origin=entry.key)
    logger.info(f"Indexed single file '{entry.key}'")
    return index


def build_from_directory(
        root: str,
        prefix_root_name: bool = False,
        max_workers: int = 8,
        extensions: Optional[Sequence[str]] = None,
        require_candidates: bool = True,
) -> VirtualFileIndex:
    """
    Index every regular file below a directory.

    Args:
        root: Directory selected by the user.
        prefix_root_name: Key files as '<root name>/<relative path>', the
            convention of browser folder pickers.
        max_workers: Thread pool size for directory listings.
        extensions: Recognized description extensions.
        require_candidates: Raise when no description file is present.

    Raises:
        NotADirectoryError: If root is not a directory.
        NoDescriptionFound: If no description file is present.
    """
    root_abs = os.path.abspath(root)
    if not os.path.isdir(root_abs):
        raise NotADirectoryError(f"Invalid input directory: {root_abs}")

    prefix = os.path.basename(root_abs.rstrip(os.sep)) if prefix_root_name else ""
    entries = {}
    for rel_path, file_path in walk_directory_tree(root_abs, max_workers=max_workers):
        key = normalize(f"{prefix}/{rel_path}" if prefix else rel_path)
        entries[key] = LocalContent(key=key, file_path=file_path)

    index = VirtualFileIndex(entries)
    _ensure_candidates(index, extensions, require_candidates, origin=root_abs)
    logger.info(f"Indexed {len(index)} file(s) under '{root_abs}'")
    return index


def build_from_hierarchy(
        files: Mapping[str, HierarchyValue],
        extensions: Optional[Sequence[str]] = None,
        require_candidates: bool = True,
) -> VirtualFileIndex:
    """
    Index an already enumerated hierarchy of relative paths.

    Values are either in-memory bytes or filesystem paths read lazily.

    Raises:
        NoDescriptionFound: If no description file is present.
    """
    entries = {}
    for raw_path, value in files.items():
        key = normalize(raw_path).lstrip("/")
        if not key:
            continue
        if isinstance(value, bytes):
            entries[key] = LocalContent(key=key, data=value)
        else:
            entries[key] = LocalContent(key=key, file_path=os.path.abspath(value))

    index = VirtualFileIndex(entries)
    _ensure_candidates(index, extensions, require_candidates, origin="<hierarchy>")
    logger.info(f"Indexed {len(index)} file(s) from supplied hierarchy")
    return index


def build_from_manifest(base_url: str) -> VirtualFileIndex:
    """Create a lazy index resolving every path to 'base_url + path'."""
    logger.info(f"Using remote sample base '{base_url}'")
    return VirtualFileIndex(remote_base=base_url)


# ==============================================================================
# TREE WALK
# ==============================================================================

def walk_directory_tree(root: str, max_workers: int = 8) -> List[Tuple[str, str]]:
    """
    Enumerate all regular files under root as (posix relative path, absolute path).

    Each directory listing is a pool task; a level is fully joined before
    the next one is scheduled, and the function only returns once the
    deepest level has been listed. Symlinked directories are not followed.
    """
    files: List[Tuple[str, str]] = []
    pending = [root]

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="TreeWalk") as executor:
        while pending:
            listings = list(executor.map(_list_directory, pending))
            pending = []
            for dir_files, sub_dirs in listings:
                files.extend(dir_files)
                pending.extend(sub_dirs)

    files = [(to_posix(os.path.relpath(path, root)), path) for _, path in files]
    files.sort()
    return files


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _list_directory(directory: str) -> _Listing:
    """List one directory, splitting entries into files and sub-directories."""
    dir_files: List[Tuple[str, str]] = []
    sub_dirs: List[str] = []
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False):
                    sub_dirs.append(entry.path)
                elif entry.is_file():
                    dir_files.append((entry.name, entry.path))
    except OSError as e:
        logger.warning(f"Skipping unreadable directory '{directory}': {e}")
    return dir_files, sub_dirs


def _ensure_candidates(
        index: VirtualFileIndex,
        extensions: Optional[Sequence[str]],
        require_candidates: bool,
        origin: str,
) -> None:
    if require_candidates and not collect_candidates(index, extensions):
        index.teardown()
        raise NoDescriptionFound(
            "No .urdf or .xacro file found in the supplied input.", path=origin
        )
