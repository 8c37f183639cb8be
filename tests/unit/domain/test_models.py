from __future__ import annotations

"""
Unit tests for Domain Models.

Verifies:
1. Status derivation of LoadResult factories (Clean/Warnings/Failed).
2. Immutability of frozen dataclasses.
3. Conversion of pipeline exceptions into diagnostics.
"""

import dataclasses

import pytest

from urdf_assembler.domain.errors import (
    Diagnostic,
    LoadErrorKind,
    NoEntryFound,
    ParseFailure,
    UnreadableRoot,
)
from urdf_assembler.domain.pipeline_models import (
    LoadOrigin,
    LoadStatus,
    create_error_result,
    create_success_result,
)


def test_success_without_warnings_is_clean():
    """TC-01: Verify the success factory reports CLEAN when nothing went wrong."""
    result = create_success_result(
        origin=LoadOrigin.DIRECTORY,
        generation=3,
        entry_path="urdf/robot.urdf",
        flat_text="<robot/>",
        urdf_text="<robot/>",
        summary_extra={"links": 0},
    )

    assert result.status is LoadStatus.CLEAN
    assert result.ok
    assert result.error is None
    assert result.summary == {"links": 0}


def test_success_with_warnings_is_degraded():
    """TC-02: Verify recoverable diagnostics turn the status into WARNINGS."""
    warning = Diagnostic(LoadErrorKind.ASSET_NOT_FOUND, "Mesh missing", "meshes/a.stl")
    result = create_success_result(
        LoadOrigin.SINGLE_FILE, 1, "a.urdf", "<robot/>", "<robot/>", warnings=[warning],
    )

    assert result.status is LoadStatus.WARNINGS
    assert result.ok
    assert result.warnings == [warning]


def test_error_result():
    """TC-03: Verify the error factory carries the fatal diagnostic."""
    error = UnreadableRoot("Cannot read", "main.xacro").to_diagnostic()
    result = create_error_result(error, LoadOrigin.MANIFEST, generation=2)

    assert result.status is LoadStatus.FAILED
    assert not result.ok
    assert result.error.kind is LoadErrorKind.UNREADABLE_ROOT
    assert result.error.path == "main.xacro"
    assert result.urdf_text == ""


def test_results_are_frozen():
    """TC-04: Verify results cannot be mutated after creation."""
    result = create_success_result(LoadOrigin.DIRECTORY, 1, "a.urdf", "", "")
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.status = LoadStatus.FAILED


def test_exception_kinds_and_fatality():
    """TC-05: Verify each exception maps to its kind and only fatal kinds are fatal."""
    assert NoEntryFound("none").kind is LoadErrorKind.NO_DESCRIPTION_FOUND
    assert ParseFailure("bad").to_diagnostic().fatal
    assert not Diagnostic(LoadErrorKind.MISSING_INCLUDE, "gone").fatal
    assert not Diagnostic(LoadErrorKind.INCLUDE_CYCLE, "loop").fatal
