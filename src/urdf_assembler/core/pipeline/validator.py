from __future__ import annotations

"""
Configuration Validator.

Sits between untrusted configuration (config.json, CLI overrides, dicts
passed by host applications) and the load pipeline. Every known key is
declared once in a field schema with its expected kind; values of the
wrong kind are coerced in lenient mode (with a warning) and rejected in
strict mode.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from urdf_assembler.domain.config import get_default_config
from urdf_assembler.domain.constants import DESCRIPTION_EXTENSIONS, MESH_EXTENSIONS

logger = logging.getLogger(__name__)

Number = Union[int, float]

_TRUE_WORDS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "n", "off"})


class _Issues:
    """Collects lenient-mode warnings, or raises straight away in strict mode."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.warnings: List[str] = []

    def note(self, message: str) -> None:
        self.warnings.append(message)

    def reject(self, message: str, exc_type: type = TypeError, outcome: str = "Using fallback.") -> None:
        if self.strict:
            raise exc_type(message)
        self.warnings.append(f"{message} {outcome}")

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a configuration mapping.

    Args:
        config: Raw configuration; None means "all defaults".
        strict: Raise TypeError/ValueError instead of coercing.

    Returns:
        Tuple[Dict[str, Any], List[str]]: (Normalized config, warnings).
    """
    defaults = get_default_config()
    issues = _Issues(strict)

    if config is None:
        return defaults, issues.warnings

    if not isinstance(config, dict):
        issues.reject(f"Invalid config type: expected dict, received {type(config).__name__}.",
                      outcome="Using defaults.")
        logger.warning(issues.warnings[-1])
        return defaults, issues.warnings

    merged: Dict[str, Any] = {**defaults, **config}
    for key, coerce in _FIELD_SCHEMA.items():
        merged[key] = coerce(key, merged.get(key), defaults[key], issues)

    merged["max_workers"] = int(merged["max_workers"])
    return merged, issues.warnings

# -----------------------------------------------------------------------------
# COERCERS
# -----------------------------------------------------------------------------

def _text(key: str, value: Any, fallback: str, issues: _Issues) -> str:
    if value is None:
        return fallback
    if not isinstance(value, str):
        issues.reject(f"Invalid field '{key}': expected str, received {type(value).__name__}.")
        return fallback
    return value.strip() or fallback


def _flag(key: str, value: Any, fallback: bool, issues: _Issues) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value

    coerced = None if issues.strict else _loose_bool(value)
    if coerced is not None:
        issues.note(f"Field '{key}' converted from {value!r} to {coerced}.")
        return coerced

    issues.reject(f"Invalid field '{key}': expected bool, received {type(value).__name__}.")
    return fallback


def _loose_bool(value: Any) -> Optional[bool]:
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def _positive(key: str, value: Any, fallback: Number, issues: _Issues) -> Number:
    if value is None:
        return fallback

    if isinstance(value, str) and not issues.strict:
        try:
            value = float(value) if "." in value else int(value)
        except ValueError:
            pass
        else:
            issues.note(f"Field '{key}' converted from string to number.")

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.reject(f"Invalid field '{key}': expected number, received {type(value).__name__}.")
        return fallback
    if value <= 0:
        issues.reject(f"Invalid field '{key}': must be greater than zero, received {value}.", ValueError)
        return fallback
    return value


def _names(key: str, value: Any, fallback: List[str], issues: _Issues) -> List[str]:
    """A list of non-blank strings; a CSV string is accepted in lenient mode."""
    if value is None:
        return list(fallback)

    if isinstance(value, str) and not issues.strict:
        items = [part.strip() for part in value.split(",") if part.strip()]
        if not items:
            return list(fallback)
        issues.note(f"Field '{key}' converted from CSV string to list.")
        return items

    if not isinstance(value, list):
        issues.reject(f"Invalid field '{key}': expected list[str], received {type(value).__name__}.")
        return list(fallback)

    items = []
    for position, item in enumerate(value):
        if not isinstance(item, str):
            issues.reject(f"Invalid item in '{key}[{position}]': expected str.", outcome="Item discarded.")
        elif item.strip():
            items.append(item.strip())
    return items or list(fallback)


def _description_exts(key: str, value: Any, fallback: List[str], issues: _Issues) -> List[str]:
    """Dotted, lower-case suffixes ('.urdf', '.xacro')."""
    out: List[str] = []
    for ext in _names(key, value, DESCRIPTION_EXTENSIONS, issues):
        lowered = ext.lower()
        if not lowered.startswith("."):
            issues.reject(f"Invalid extension '{ext}': must start with '.'.", ValueError,
                          outcome=f"Extension corrected to '.{lowered}'.")
            lowered = "." + lowered
        out.append(lowered)
    return out or list(DESCRIPTION_EXTENSIONS)


def _mesh_formats(key: str, value: Any, fallback: List[str], issues: _Issues) -> List[str]:
    """Bare lower-case format names ('stl', 'dae')."""
    return [ext.lstrip(".").lower() for ext in _names(key, value, MESH_EXTENSIONS, issues)]


_FIELD_SCHEMA: Dict[str, Callable[[str, Any, Any, _Issues], Any]] = {
    "static_base_url": _text,
    "asset_api_prefix": _text,
    "samples_base_url": _text,
    "samples_api_path": _text,
    "manifest_filename": _text,
    "static_mode": _flag,
    "urdf_sibling_heuristic": _flag,
    "probe_remote_assets": _flag,
    "load_collision": _flag,
    "max_workers": _positive,
    "request_timeout": _positive,
    "description_extensions": _description_exts,
    "mesh_extensions": _mesh_formats,
}
