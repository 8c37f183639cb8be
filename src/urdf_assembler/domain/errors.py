from __future__ import annotations

"""
Assembly Error Taxonomy.

Every failure the pipeline can report carries a 'LoadErrorKind'. Fatal
kinds travel as exceptions up to the load orchestrator, which converts them
into a failed LoadResult. Recoverable kinds never raise; they are recorded
as 'Diagnostic' entries and the pipeline continues.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

# -----------------------------------------------------------------------------
# ERROR KINDS
# -----------------------------------------------------------------------------

class LoadErrorKind(str, Enum):
    """Classification of everything that can go wrong while assembling a model."""
    NO_DESCRIPTION_FOUND = "NoDescriptionFound"
    UNREADABLE_ROOT = "UnreadableRoot"
    MISSING_INCLUDE = "MissingInclude"
    INCLUDE_CYCLE = "IncludeCycle"
    ASSET_NOT_FOUND = "AssetNotFound"
    PARSE_FAILURE = "ParseFailure"


FATAL_KINDS: FrozenSet[LoadErrorKind] = frozenset({
    LoadErrorKind.NO_DESCRIPTION_FOUND,
    LoadErrorKind.UNREADABLE_ROOT,
    LoadErrorKind.PARSE_FAILURE,
})


@dataclass(frozen=True)
class Diagnostic:
    """
    A single reported problem.

    Attributes:
        kind: Error classification.
        message: Human-readable description.
        path: Document or asset reference the problem relates to.
    """
    kind: LoadErrorKind
    message: str
    path: str = ""

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_KINDS

# -----------------------------------------------------------------------------
# EXCEPTIONS
# -----------------------------------------------------------------------------

class AssemblerError(Exception):
    """Base class for all errors raised by the assembly pipeline."""

    kind: LoadErrorKind = LoadErrorKind.PARSE_FAILURE

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(kind=self.kind, message=self.message, path=self.path)


class NoDescriptionFound(AssemblerError):
    """No .urdf or .xacro file exists among the supplied inputs."""
    kind = LoadErrorKind.NO_DESCRIPTION_FOUND


class NoEntryFound(NoDescriptionFound):
    """The entry point selector received an empty candidate set."""


class UnreadableRoot(AssemblerError):
    """The entry document could not be read."""
    kind = LoadErrorKind.UNREADABLE_ROOT


class ParseFailure(AssemblerError):
    """The assembled text is not valid input for the description parser."""
    kind = LoadErrorKind.PARSE_FAILURE


class PathEscapeError(ValueError):
    """A '..' segment tried to climb above the virtual root (strict mode only)."""


class IndexClosedError(RuntimeError):
    """A handle was requested from an index that has already been torn down."""


def diagnostic_from(kind: LoadErrorKind, message: str, path: Optional[str] = None) -> Diagnostic:
    """Shorthand used by components that record recoverable warnings."""
    return Diagnostic(kind=kind, message=message, path=path or "")
