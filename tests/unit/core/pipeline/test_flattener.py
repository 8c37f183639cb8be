from __future__ import annotations

"""
Unit tests for the Macro Include Flattener.

Covers the algebraic properties of flattening (identity, simultaneous
substitution, idempotence), cycle safety, recoverable misses and the
wrapper stripping of included documents.
"""

import re
from typing import Dict
from unittest.mock import patch

import pytest

from urdf_assembler.core.pipeline.flattener import (
    MacroFlattener,
    flatten,
    scan_include_directives,
    strip_document_wrapper,
)
from urdf_assembler.core.resolution.index import LocalContent, VirtualFileIndex
from urdf_assembler.domain.errors import LoadErrorKind, UnreadableRoot

XACRO_NS = 'xmlns:xacro="http://www.ros.org/wiki/xacro"'


def _index(files: Dict[str, str]) -> VirtualFileIndex:
    return VirtualFileIndex({
        key: LocalContent(key=key, data=text.encode("utf-8")) for key, text in files.items()
    })

# -----------------------------------------------------------------------------
# TEXT HELPERS
# -----------------------------------------------------------------------------

def test_scan_include_directives_quotes_and_self_close() -> None:
    """TC-01: Verify both quote styles and optional self-closing are matched."""
    text = (
        '<xacro:include filename="a.xacro"/>'
        "<xacro:include filename='b.xacro' />"
        '<xacro:include  filename="c.xacro">'
    )
    directives = scan_include_directives(text)

    assert [d.raw_path for d in directives] == ["a.xacro", "b.xacro", "c.xacro"]
    assert directives[0].start == 0
    assert text[directives[1].start:directives[1].end] == "<xacro:include filename='b.xacro' />"


def test_strip_document_wrapper() -> None:
    """TC-02: Verify the declaration and root tag pair are removed."""
    doc = '<?xml version="1.0"?>\n<!-- header -->\n<robot name="x">\n  <link name="a"/>\n</robot>\n'
    assert strip_document_wrapper(doc) == '\n  <link name="a"/>\n'


def test_strip_document_wrapper_self_closing_root() -> None:
    """TC-03: Verify a self-closing root yields an empty fragment."""
    assert strip_document_wrapper('<?xml version="1.0"?><robot name="empty"/>') == ""

# -----------------------------------------------------------------------------
# PROPERTIES
# -----------------------------------------------------------------------------

def test_identity_without_directives() -> None:
    """TC-04: Verify documents without directives are returned unchanged."""
    doc = '<?xml version="1.0"?>\n<robot name="r"><link name="base"/></robot>\n'
    result = flatten(doc, "robot.urdf", _index({"robot.urdf": doc}))

    assert result.text == doc
    assert result.warnings == []


def test_sibling_directives_equal_simultaneous_substitution() -> None:
    """TC-05: Verify splicing matches simultaneous substitution with fragments of different lengths."""
    root = (
        f'<robot name="r" {XACRO_NS}>\n'
        '  <xacro:include filename="short.xacro"/>\n'
        '  <mid/>\n'
        "  <xacro:include filename='long.xacro' />\n"
        '</robot>\n'
    )
    short_doc = "<robot><s/></robot>"
    long_doc = (
        '<?xml version="1.0"?>\n<robot name="x">\n'
        '  <link name="a_rather_long_fragment_name_to_shift_offsets"/>\n'
        '  <link name="another"/>\n</robot>\n'
    )
    index = _index({"root.xacro": root, "short.xacro": short_doc, "long.xacro": long_doc})
    fragments = {
        "short.xacro": strip_document_wrapper(short_doc),
        "long.xacro": strip_document_wrapper(long_doc),
    }
    expected = re.sub(
        r"<xacro:include filename=['\"]([^'\"]+)['\"]\s*/>",
        lambda m: fragments[m.group(1)],
        root,
    )

    result = flatten(root, "root.xacro", index)

    assert result.text == expected
    assert result.warnings == []
    assert "<s/>" in result.text
    assert result.text.index("<s/>") < result.text.index("<mid/>") < result.text.index("another")


def test_flattening_is_idempotent() -> None:
    """TC-06: Verify a second pass over flattened text changes nothing."""
    root = f'<robot {XACRO_NS}><xacro:include filename="parts/arm.xacro"/></robot>'
    arm = f'<robot {XACRO_NS}><link name="arm"/><xacro:include filename="joint.xacro"/></robot>'
    joint = '<robot><joint name="j" type="fixed"/></robot>'
    index = _index({"urdf/main.xacro": root, "urdf/parts/arm.xacro": arm, "urdf/parts/joint.xacro": joint})

    once = flatten(root, "urdf/main.xacro", index)
    twice = flatten(once.text, "urdf/main.xacro", index)

    assert "<xacro:include" not in once.text
    assert twice.text == once.text
    assert twice.warnings == []


def test_nested_includes_resolve_against_their_own_path() -> None:
    """TC-07: Verify relative includes use the including document's directory."""
    root = f'<robot {XACRO_NS}><xacro:include filename="parts/arm.xacro"/></robot>'
    arm = f'<robot {XACRO_NS}><xacro:include filename="joint.xacro"/></robot>'
    joint = '<robot><joint name="nested"/></robot>'
    index = _index({
        "urdf/main.xacro": root,
        "urdf/parts/arm.xacro": arm,
        "urdf/parts/joint.xacro": joint,
        "urdf/joint.xacro": '<robot><joint name="wrong"/></robot>',
    })

    result = flatten(root, "urdf/main.xacro", index)

    assert '<joint name="nested"/>' in result.text
    assert "wrong" not in result.text


def test_mutual_inclusion_terminates_with_cycle_warning() -> None:
    """TC-08: Verify A -> B -> A stops with exactly one INCLUDE_CYCLE."""
    a = f'<robot {XACRO_NS}><a_marker/><xacro:include filename="b.xacro"/></robot>'
    b = f'<robot {XACRO_NS}><b_marker/><xacro:include filename="a.xacro"/></robot>'
    index = _index({"a.xacro": a, "b.xacro": b})

    result = flatten(a, "a.xacro", index)

    kinds = [w.kind for w in result.warnings]
    assert kinds == [LoadErrorKind.INCLUDE_CYCLE]
    assert result.text == f'<robot {XACRO_NS}><a_marker/><b_marker/><xacro:include filename="a.xacro"/></robot>'


def test_self_inclusion_is_a_cycle() -> None:
    """TC-09: Verify a document including itself is caught."""
    doc = '<robot><xacro:include filename="self.xacro"/></robot>'
    result = flatten(doc, "self.xacro", _index({"self.xacro": doc}))

    assert result.text == doc
    assert [w.kind for w in result.warnings] == [LoadErrorKind.INCLUDE_CYCLE]


def test_repeated_sibling_include_is_not_a_cycle() -> None:
    """TC-10: Verify including the same file twice side by side expands both."""
    root = '<robot><xacro:include filename="w.xacro"/><xacro:include filename="w.xacro"/></robot>'
    result = flatten(root, "r.xacro", _index({"r.xacro": root, "w.xacro": "<robot><w/></robot>"}))

    assert result.text == "<robot><w/><w/></robot>"
    assert result.warnings == []


def test_missing_include_is_kept_and_reported() -> None:
    """TC-11: Verify a miss keeps the directive and continues with siblings."""
    root = '<robot><xacro:include filename="gone.xacro"/><xacro:include filename="ok.xacro"/></robot>'
    index = _index({"r.xacro": root, "ok.xacro": "<robot><ok/></robot>"})

    result = flatten(root, "r.xacro", index)

    assert result.text == '<robot><xacro:include filename="gone.xacro"/><ok/></robot>'
    assert [w.kind for w in result.warnings] == [LoadErrorKind.MISSING_INCLUDE]
    assert result.warnings[0].path == "gone.xacro"

# -----------------------------------------------------------------------------
# PACKAGE AND REMOTE REFERENCES
# -----------------------------------------------------------------------------

def test_find_macro_include_uses_package_root_hint() -> None:
    """TC-12: Verify '$(find pkg)' includes map under the package root."""
    root = '<robot><xacro:include filename="$(find bot)/urdf/wheel.xacro"/></robot>'
    index = _index({
        "bot/urdf/main.xacro": root,
        "bot/urdf/wheel.xacro": "<robot><wheel/></robot>",
    })

    result = MacroFlattener(index, package_root_hint="bot").flatten(root, "bot/urdf/main.xacro")

    assert result.text == "<robot><wheel/></robot>"


def test_remote_include_is_fetched() -> None:
    """TC-13: Verify absolute URL includes are downloaded through the network layer."""
    root = '<robot><xacro:include filename="https://host/common.xacro"/></robot>'
    with patch("urdf_assembler.infra.network.fetch_text", return_value="<robot><common/></robot>") as mock_fetch:
        result = flatten(root, "r.xacro", _index({"r.xacro": root}))

    mock_fetch.assert_called_once_with("https://host/common.xacro")
    assert result.text == "<robot><common/></robot>"


def test_unreadable_root_is_fatal() -> None:
    """TC-14: Verify only the root document failing to read raises."""
    with pytest.raises(UnreadableRoot):
        MacroFlattener(_index({})).flatten_path("missing.xacro")


def test_explicit_closing_tag_is_consumed() -> None:
    """TC-15: Verify '<xacro:include ...></xacro:include>' is replaced as a whole."""
    root = '<robot><xacro:include filename="w.xacro">\n  </xacro:include><tail/></robot>'
    result = flatten(root, "r.xacro", _index({"r.xacro": root, "w.xacro": "<robot><w/></robot>"}))

    assert result.text == "<robot><w/><tail/></robot>"
    assert "</xacro:include>" not in result.text


def test_package_include_rebased_under_remote_static_base() -> None:
    """TC-16: Verify flat sources fetch package includes from a remote static base."""
    root = '<robot><xacro:include filename="$(find pkg)/urdf/arm.xacro"/></robot>'
    with patch("urdf_assembler.infra.network.fetch_text", return_value="<robot><arm/></robot>") as mock_fetch:
        result = MacroFlattener(
            _index({"robot.xacro": root}), package_root_hint="https://host/static/"
        ).flatten(root, "robot.xacro")

    mock_fetch.assert_called_once_with("https://host/static/pkg/urdf/arm.xacro")
    assert result.text == "<robot><arm/></robot>"
    assert result.warnings == []


def test_same_base_name_in_other_directory_is_a_miss() -> None:
    """TC-17: Verify an include never binds to an unrelated file sharing its name."""
    root = '<robot><xacro:include filename="$(find pkg_b)/urdf/common.xacro"/></robot>'
    index = _index({
        "pkg_a/urdf/main.xacro": root,
        "pkg_a/config/common.xacro": "<robot><wrong_file/></robot>",
    })

    result = MacroFlattener(index, package_root_hint="pkg_a").flatten(root, "pkg_a/urdf/main.xacro")

    assert result.text == root
    assert [w.kind for w in result.warnings] == [LoadErrorKind.MISSING_INCLUDE]
