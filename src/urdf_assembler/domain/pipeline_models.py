from __future__ import annotations

"""
Pipeline Domain Data Models.

Defines the data structures and factory functions used to communicate
load outcomes between the assembly engine and its callers (CLI, host
applications, tests).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from urdf_assembler.domain.errors import Diagnostic

# -----------------------------------------------------------------------------
# CORE DATA MODELS
# -----------------------------------------------------------------------------

class LoadStatus(str, Enum):
    """Distinguishes a clean load from a degraded one and from a failure."""
    CLEAN = "clean"
    WARNINGS = "warnings"
    FAILED = "failed"


class LoadOrigin(str, Enum):
    """Input channel a load was started from."""
    SINGLE_FILE = "single_file"
    DIRECTORY = "directory"
    MANIFEST = "manifest"


@dataclass(frozen=True)
class IncludeDirective:
    """
    A located inclusion directive inside a macro document.

    Attributes:
        start: Offset of the first character of the directive.
        end: Offset one past the last character of the directive.
        raw_path: The unprocessed 'filename' expression.
    """
    start: int
    end: int
    raw_path: str


@dataclass(frozen=True)
class FlattenResult:
    """Flattened text plus the recoverable problems met on the way."""
    text: str
    warnings: List[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class LoadResult:
    """
    Unified result object of one load operation.

    Attributes:
        status: Clean, degraded (warnings) or failed.
        origin: Input channel used.
        generation: Monotonic tag of the load request that produced this result.
        entry_path: Index key (or remote path) of the selected entry document.
        flat_text: Entry document after include flattening.
        urdf_text: Parse-ready description after macro expansion.
        warnings: Recoverable diagnostics accumulated during the load.
        error: The fatal diagnostic, if the load failed.
        summary: Technical execution summary and statistics.
    """
    status: LoadStatus
    origin: LoadOrigin
    generation: int = 0

    entry_path: str = ""
    flat_text: str = ""
    urdf_text: str = ""

    warnings: List[Diagnostic] = field(default_factory=list)
    error: Optional[Diagnostic] = None

    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is not LoadStatus.FAILED

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_error_result(
        error: Diagnostic,
        origin: LoadOrigin,
        generation: int = 0,
        entry_path: str = "",
        warnings: Optional[List[Diagnostic]] = None,
        summary_extra: Optional[Dict[str, Any]] = None
) -> LoadResult:
    """
    Create a failed load result instance.

    Args:
        error: The fatal diagnostic that aborted the load.
        origin: Input channel used.
        generation: Load request tag.
        entry_path: Entry document, if one was selected before failing.
        warnings: Recoverable diagnostics gathered before the failure.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        LoadResult: An immutable error result object.
    """
    return LoadResult(
        status=LoadStatus.FAILED,
        origin=origin,
        generation=generation,
        entry_path=entry_path,
        warnings=list(warnings or []),
        error=error,
        summary=summary_extra or {},
    )


def create_success_result(
        origin: LoadOrigin,
        generation: int,
        entry_path: str,
        flat_text: str,
        urdf_text: str,
        warnings: Optional[List[Diagnostic]] = None,
        summary_extra: Optional[Dict[str, Any]] = None
) -> LoadResult:
    """
    Create a successful load result; the status reflects whether warnings exist.

    Args:
        origin: Input channel used.
        generation: Load request tag.
        entry_path: Selected entry document.
        flat_text: Include-flattened document.
        urdf_text: Macro-expanded description.
        warnings: Recoverable diagnostics.
        summary_extra: Final execution metrics.

    Returns:
        LoadResult: An immutable success result object.
    """
    warning_list = list(warnings or [])
    return LoadResult(
        status=LoadStatus.WARNINGS if warning_list else LoadStatus.CLEAN,
        origin=origin,
        generation=generation,
        entry_path=entry_path,
        flat_text=flat_text,
        urdf_text=urdf_text,
        warnings=warning_list,
        summary=summary_extra or {},
    )
