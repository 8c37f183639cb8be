from __future__ import annotations

"""
Macro Include Flattener.

Resolves every '<xacro:include filename="..."/>' directive of a macro
document into a single flat document, depth-first:
1. Scan the document for directives (left to right).
2. Expand directives highest offset first; each included document is read
   from the file index, stripped of its XML declaration and root wrapper,
   and flattened recursively against its own path.
3. Rebuild the document once from an ordered list of kept text and
   replacements, so offsets never shift while expanding.

Missing targets and include cycles keep the directive text and record a
warning. Only an unreadable root document is fatal.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from urdf_assembler.core.resolution.index import VirtualFileIndex
from urdf_assembler.core.resolution.paths import (
    is_package_ref,
    is_remote,
    package_to_index_key_or_url,
    resolve_relative,
    substitute_package_macros,
)
from urdf_assembler.domain.errors import (
    Diagnostic,
    LoadErrorKind,
    UnreadableRoot,
    diagnostic_from,
)
from urdf_assembler.domain.pipeline_models import FlattenResult, IncludeDirective
from urdf_assembler.infra import network

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PATTERNS
# -----------------------------------------------------------------------------

_INCLUDE_RX = re.compile(
    r"<xacro:include\s+filename\s*=\s*(['\"])(?P<path>[^'\"]+)\1\s*"
    r"(?:/>|>(?:\s*</xacro:include\s*>)?)"
)
_XML_DECL_RX = re.compile(r"\A\s*<\?xml\b.*?\?>", re.DOTALL)
_ROOT_OPEN_RX = re.compile(r"<(?P<tag>[A-Za-z_][\w:.\-]*)\b[^>]*?(?P<selfclose>/?)>", re.DOTALL)

MAX_INCLUDE_DEPTH = 64

# -----------------------------------------------------------------------------
# TEXT HELPERS
# -----------------------------------------------------------------------------

def scan_include_directives(text: str) -> List[IncludeDirective]:
    """Locate all inclusion directives in document order."""
    return [
        IncludeDirective(start=m.start(), end=m.end(), raw_path=m.group("path"))
        for m in _INCLUDE_RX.finditer(text)
    ]


def strip_document_wrapper(text: str) -> str:
    """
    Reduce an included document to the inner fragment of its root element.

    Removes one leading XML declaration and the outermost root open/close
    tag pair. A self-closing root yields an empty fragment. Text without
    any element is returned minus its declaration.
    """
    body = _XML_DECL_RX.sub("", text, count=1)

    opening = _first_element(body)
    if opening is None:
        return body
    if opening.group("selfclose"):
        return ""

    inner_start = opening.end()
    closing_tag = f"</{opening.group('tag')}>"
    inner_end = body.rfind(closing_tag)
    if inner_end < inner_start:
        return body[inner_start:]
    return body[inner_start:inner_end]


def splice(text: str, directives: List[IncludeDirective], replacements: Dict[int, str]) -> str:
    """
    Rebuild text, replacing each directive span with replacements[start].

    Directives without a replacement keep their original text.
    """
    pieces: List[str] = []
    cursor = 0
    for directive in directives:
        pieces.append(text[cursor:directive.start])
        pieces.append(replacements.get(directive.start, text[directive.start:directive.end]))
        cursor = directive.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def _first_element(text: str) -> Optional[re.Match]:
    """Find the first start tag, skipping comments, PIs and DOCTYPE."""
    pos = 0
    while True:
        lt = text.find("<", pos)
        if lt < 0:
            return None
        if text.startswith("<!--", lt):
            end = text.find("-->", lt + 4)
            pos = len(text) if end < 0 else end + 3
            continue
        if text.startswith("<?", lt) or text.startswith("<!", lt):
            end = text.find(">", lt + 2)
            pos = len(text) if end < 0 else end + 1
            continue
        return _ROOT_OPEN_RX.match(text, lt)

# -----------------------------------------------------------------------------
# FLATTENER
# -----------------------------------------------------------------------------

class MacroFlattener:
    """
    Depth-first include flattener bound to one file index.

    Args:
        index: File index the directives are resolved against.
        package_root_hint: Prefix that 'package://' references are re-based under.
    """

    def __init__(self, index: VirtualFileIndex, package_root_hint: str = "") -> None:
        self._index = index
        self._package_root_hint = package_root_hint

    def flatten(self, root_text: str, root_path: str) -> FlattenResult:
        """
        Flatten a document whose text is already available.

        Returns:
            FlattenResult: Flat text and recoverable diagnostics.
        """
        warnings: List[Diagnostic] = []
        text = self._flatten(root_text, root_path, {root_path}, warnings, depth=0)
        if warnings:
            logger.warning(f"Flattened '{root_path}' with {len(warnings)} warning(s)")
        return FlattenResult(text=text, warnings=warnings)

    def flatten_path(self, root_path: str) -> FlattenResult:
        """
        Read a root document from the index and flatten it.

        Raises:
            UnreadableRoot: If the root document cannot be read.
        """
        try:
            root_text = self._index.read_text(root_path)
        except OSError as e:
            raise UnreadableRoot(f"Cannot read entry document: {e}", path=root_path) from e
        return self.flatten(root_text, root_path)

    # --- Recursion ---

    def _flatten(
            self,
            text: str,
            path: str,
            active: Set[str],
            warnings: List[Diagnostic],
            depth: int,
    ) -> str:
        directives = scan_include_directives(text)
        if not directives:
            return text

        replacements: Dict[int, str] = {}
        for directive in reversed(directives):
            expanded = self._expand(directive, path, active, warnings, depth)
            if expanded is not None:
                replacements[directive.start] = expanded

        return splice(text, directives, replacements)

    def _expand(
            self,
            directive: IncludeDirective,
            parent_path: str,
            active: Set[str],
            warnings: List[Diagnostic],
            depth: int,
    ) -> Optional[str]:
        raw = directive.raw_path
        target = self._resolve_target(raw, parent_path)

        if target is None:
            msg = f"Include '{raw}' in '{parent_path}' could not be resolved"
            logger.warning(msg)
            warnings.append(diagnostic_from(LoadErrorKind.MISSING_INCLUDE, msg, raw))
            return None

        if target in active:
            msg = f"Include cycle: '{target}' is already being expanded (from '{parent_path}')"
            logger.warning(msg)
            warnings.append(diagnostic_from(LoadErrorKind.INCLUDE_CYCLE, msg, target))
            return None

        if depth >= MAX_INCLUDE_DEPTH:
            msg = f"Include '{target}' exceeds the maximum nesting depth of {MAX_INCLUDE_DEPTH}"
            logger.warning(msg)
            warnings.append(diagnostic_from(LoadErrorKind.INCLUDE_CYCLE, msg, target))
            return None

        included = self._read(target)
        if included is None:
            msg = f"Include '{target}' could not be read"
            logger.warning(msg)
            warnings.append(diagnostic_from(LoadErrorKind.MISSING_INCLUDE, msg, target))
            return None

        logger.debug(f"Expanding include '{target}' into '{parent_path}'")
        fragment = strip_document_wrapper(included)
        active.add(target)
        try:
            return self._flatten(fragment, target, active, warnings, depth + 1)
        finally:
            active.discard(target)

    def _resolve_target(self, raw: str, parent_path: str) -> Optional[str]:
        """Map a raw 'filename' expression onto an index key or remote URL."""
        ref = substitute_package_macros(raw)
        if is_remote(ref):
            return ref
        if is_package_ref(ref):
            candidate = package_to_index_key_or_url(ref, self._package_root_hint)
            if is_remote(candidate):
                return candidate
        else:
            candidate = resolve_relative(parent_path, ref, urdf_sibling_heuristic=False)
        return self._index.find(candidate)

    def _read(self, target: str) -> Optional[str]:
        if is_remote(target):
            return network.fetch_text(target)
        try:
            return self._index.read_text(target)
        except OSError as e:
            logger.debug(f"Read failure for '{target}': {e}")
            return None


def flatten(
        root_text: str,
        root_path: str,
        index: VirtualFileIndex,
        package_root_hint: str = "",
) -> FlattenResult:
    """Functional shorthand for MacroFlattener(index, hint).flatten(text, path)."""
    return MacroFlattener(index, package_root_hint).flatten(root_text, root_path)
