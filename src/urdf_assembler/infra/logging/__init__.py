from __future__ import annotations

"""Logging facade: queue-backed root logger wiring and diagnostics helpers."""

from .config import LoggingConfig, level_from_name
from .core import (
    configure_logging,
    get_default_log_path,
    get_logger,
    get_recent_logs,
    shutdown_logging,
)
from .handlers import is_owned

__all__ = [
    "LoggingConfig",
    "level_from_name",
    "configure_logging",
    "shutdown_logging",
    "get_logger",
    "get_recent_logs",
    "get_default_log_path",
    "is_owned",
]
