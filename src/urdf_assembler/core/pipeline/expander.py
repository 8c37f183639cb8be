from __future__ import annotations

"""
Macro Expansion.

Turns a flattened macro document into plain URDF. The default expander
delegates to the 'xacro' package (properties, '${...}' expressions,
macros, conditionals). Includes are already inlined by the flattener, and
'$(find <pkg>)' tokens are rewritten to 'package://<pkg>' first, so no
ROS package lookup is needed.

Any callable with the MacroExpander signature can replace it.
"""

import logging
import threading
from typing import Callable
from xml.parsers.expat import ExpatError

import xacro

from urdf_assembler.core.resolution.paths import rewrite_find_macros
from urdf_assembler.domain.errors import ParseFailure

logger = logging.getLogger(__name__)

# Expands macro-language constructs of a flattened document into plain URDF
MacroExpander = Callable[[str], str]

# xacro keeps its file and macro stacks in module globals
_XACRO_LOCK = threading.Lock()


def expand_xacro(text: str) -> str:
    """
    Expand a flattened xacro document with the xacro processor.

    Args:
        text: Flattened macro document.

    Returns:
        str: The expanded URDF document.

    Raises:
        ParseFailure: If the document is not well-formed or expansion fails.
    """
    source = rewrite_find_macros(text)
    with _XACRO_LOCK:
        try:
            doc = xacro.parse(source)
            xacro.process_doc(doc)
        except ExpatError as e:
            raise ParseFailure(f"Malformed macro document: {e}") from e
        except Exception as e:
            raise ParseFailure(f"Macro expansion failed: {e}") from e

    logger.debug("Macro document expanded")
    return doc.toxml()
