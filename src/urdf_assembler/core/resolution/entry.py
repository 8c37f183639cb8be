from __future__ import annotations

"""
Entry Point Selection.

Decides which description document to load first when an input carries
several candidates, and which documents a sample manifest should expose.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from urdf_assembler.core.resolution.index import VirtualFileIndex
from urdf_assembler.core.resolution.paths import basename
from urdf_assembler.domain.constants import (
    DESCRIPTION_EXTENSIONS,
    URDF_EXTENSION,
)
from urdf_assembler.domain.errors import NoEntryFound

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

def is_description_file(name: str, extensions: Optional[Sequence[str]] = None) -> bool:
    """True when the name ends in a recognized description or macro extension."""
    lower = name.lower()
    return any(lower.endswith(ext.lower()) for ext in (extensions or DESCRIPTION_EXTENSIONS))


def collect_candidates(
        index: VirtualFileIndex,
        extensions: Optional[Sequence[str]] = None,
) -> List[str]:
    """Description candidates of an index, in the index's (sorted) key order."""
    return [k for k in index.keys() if is_description_file(k, extensions)]


def is_manifest_entry(rel_path: str) -> bool:
    """
    Decide whether a hosted file should be listed as a selectable sample.

    Root-level description files are always listed. Inside subdirectories
    only 'main' documents and plain URDF files are, since nested macro
    fragments are rarely loadable on their own.
    """
    lower = rel_path.lower()
    if not is_description_file(lower):
        return False

    if "/" not in rel_path:
        return True
    if "main" in lower:
        return True
    return lower.endswith(URDF_EXTENSION)

# -----------------------------------------------------------------------------
# SELECTION
# -----------------------------------------------------------------------------

def select_entry_point(candidates: Iterable[str]) -> str:
    """
    Pick the entry document among description candidates.

    Rules, first match wins:
    1. file name contains 'main' (case-insensitive);
    2. file name contains 'robot';
    3. candidate lives at the root (no directory separator);
    4. first candidate in enumeration order.

    Within a rule the first candidate in enumeration order wins, so the
    result is stable for a fixed, ordered input. Rule 4 depends entirely
    on that order and carries no further meaning.

    Raises:
        NoEntryFound: If there are no candidates.
    """
    ordered = list(candidates)
    if not ordered:
        raise NoEntryFound("No .urdf or .xacro file found among the supplied files.")

    for rule, predicate in (
            ("name contains 'main'", lambda p: "main" in basename(p).lower()),
            ("name contains 'robot'", lambda p: "robot" in basename(p).lower()),
            ("root-level file", lambda p: "/" not in p),
    ):
        for path in ordered:
            if predicate(path):
                logger.debug(f"Entry point '{path}' selected by rule: {rule}")
                return path

    logger.debug(f"Entry point '{ordered[0]}' selected by enumeration order")
    return ordered[0]
