from __future__ import annotations

"""
Virtual Path Resolution.

Pure string functions that normalize, join and rewrite the three addressing
schemes met while assembling a robot model:
1. Host-relative and remote URLs.
2. ROS package references ('package://pkg/...' and '$(find pkg)/...').
3. Forward-slash keys of the in-memory file index.

Nothing in this module touches the filesystem or the network.
"""

import re
from typing import List

from urdf_assembler.domain.constants import (
    EPHEMERAL_PREFIXES,
    PACKAGE_SCHEME,
    REMOTE_PREFIXES,
    URDF_SUBDIR_NAME,
)
from urdf_assembler.domain.errors import PathEscapeError

_FIND_MACRO_RX = re.compile(r"\$\(find\s+([\w\-\.]+)\s*\)")

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

def is_remote(ref: str) -> bool:
    return ref.startswith(REMOTE_PREFIXES)


def is_ephemeral(ref: str) -> bool:
    return ref.startswith(EPHEMERAL_PREFIXES)


def is_package_ref(ref: str) -> bool:
    return ref.startswith(PACKAGE_SCHEME)


def is_absolute(ref: str) -> bool:
    return ref.startswith("/")


def is_passthrough(ref: str) -> bool:
    """References that relative resolution must return untouched."""
    return is_absolute(ref) or is_remote(ref) or is_ephemeral(ref) or is_package_ref(ref)

# -----------------------------------------------------------------------------
# SEGMENT OPERATIONS
# -----------------------------------------------------------------------------

def normalize(path: str, strict: bool = False) -> str:
    """
    Collapse '.' and '..' segments with a stack and unify separators.

    A '..' that would climb above the root is dropped (clamped), so the
    result never points outside the virtual tree. A leading '/' is kept.

    Args:
        path: Raw path, '/' or '\\' separated.
        strict: Raise PathEscapeError instead of clamping.

    Returns:
        str: Forward-slash path without empty, '.' or '..' segments.
    """
    unified = path.replace("\\", "/")
    stack: List[str] = []

    for segment in unified.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if stack:
                stack.pop()
            elif strict:
                raise PathEscapeError(f"Path escapes the virtual root: {path}")
            continue
        stack.append(segment)

    joined = "/".join(stack)
    return "/" + joined if unified.startswith("/") else joined


def dirname(path: str) -> str:
    """Directory part of a forward-slash path ('' for root-level names)."""
    head, sep, _ = path.rpartition("/")
    if not sep:
        return ""
    return head or "/"


def basename(path: str) -> str:
    return path.rpartition("/")[2]


def split_segments(path: str) -> List[str]:
    return [s for s in path.split("/") if s]


def join_url(base: str, path: str) -> str:
    """Join a URL or path prefix with a relative path using exactly one slash."""
    if not base:
        return path
    return base.rstrip("/") + "/" + path.lstrip("/")

# -----------------------------------------------------------------------------
# RELATIVE RESOLUTION
# -----------------------------------------------------------------------------

def in_urdf_subdir(directory: str) -> bool:
    """True when a directory is a conventional '<pkg>/urdf' folder."""
    return directory == URDF_SUBDIR_NAME or directory.endswith("/" + URDF_SUBDIR_NAME)


def resolve_relative(base_path: str, ref: str, urdf_sibling_heuristic: bool = True) -> str:
    """
    Resolve a reference against the directory of the document that holds it.

    Absolute, remote, ephemeral and package references are returned unchanged.

    Named exception (urdf-sibling heuristic): ROS packages conventionally keep
    descriptions in '<pkg>/urdf/' and meshes in '<pkg>/meshes/', while the
    description refers to meshes as 'meshes/x.stl'. When the base directory
    ends in 'urdf' and the reference does not start with '..', the
    reference is resolved against the package root instead. Pass
    'urdf_sibling_heuristic=False' to disable it.

    Args:
        base_path: Path of the referencing document (a file, not a directory).
        ref: Raw relative reference.
        urdf_sibling_heuristic: Apply the named exception described above.

    Returns:
        str: Normalized resolved path.
    """
    if is_passthrough(ref):
        return ref

    base_dir = dirname(base_path)
    if urdf_sibling_heuristic and in_urdf_subdir(base_dir) and not ref.startswith(".."):
        base_dir = dirname(base_dir)

    if base_dir in ("", "/"):
        joined = base_dir + ref
    else:
        joined = f"{base_dir}/{ref}"
    return normalize(joined)

# -----------------------------------------------------------------------------
# PACKAGE REFERENCES
# -----------------------------------------------------------------------------

def substitute_package_macros(raw_ref: str) -> str:
    """
    Rewrite ROS package forms into the canonical 'package://<name>/<rest>' token.

    'package://...' passes through. A '$(find <name>)' token anywhere in the
    string becomes 'package://<name>' and whatever preceded it is dropped.
    Any other string is returned unchanged and treated as relative.
    """
    ref = raw_ref.strip()
    if is_package_ref(ref):
        return ref

    match = _FIND_MACRO_RX.search(ref)
    if not match:
        return ref

    rest = ref[match.end():].lstrip("/")
    canonical = PACKAGE_SCHEME + match.group(1)
    return f"{canonical}/{rest}" if rest else canonical


def rewrite_find_macros(text: str) -> str:
    """Replace every '$(find <name>)' token in a document with 'package://<name>'."""
    return _FIND_MACRO_RX.sub(lambda m: PACKAGE_SCHEME + m.group(1), text)


def package_root_of(entry_path: str) -> str:
    """First path segment of a hierarchical entry document, '' when flat."""
    segments = split_segments(entry_path)
    return segments[0] if len(segments) > 1 else ""


def package_to_index_key_or_url(canonical_ref: str, package_root_hint: str) -> str:
    """
    Strip the 'package://' scheme and re-base the remainder under the package root.

    For hierarchical sources the hint is the first segment of the entry
    document's path; for flat sources it is the configured static base. The
    hint is not repeated when the remainder already starts with it.

    Args:
        canonical_ref: Reference produced by substitute_package_macros.
        package_root_hint: Index prefix or URL base to re-base under.

    Returns:
        str: Index key or URL.
    """
    if not is_package_ref(canonical_ref):
        return canonical_ref

    remainder = normalize(canonical_ref[len(PACKAGE_SCHEME):])
    if not package_root_hint:
        return remainder

    hint = package_root_hint.rstrip("/")
    if hint and (remainder == hint or remainder.startswith(hint + "/")):
        return remainder
    return join_url(package_root_hint, remainder)


def lookup_variants(reference: str) -> List[str]:
    """
    Progressively shorter suffixes of a path, longest first, down to two segments.

    Used by tolerant index lookups when a reference carries more (or other)
    leading directories than the index keys do.
    """
    segments = split_segments(reference)
    return ["/".join(segments[i:]) for i in range(0, max(len(segments) - 1, 1))]
