from __future__ import annotations

"""
Logging Configuration Models.

Describes how the logging subsystem should be wired: severity, sinks
(stderr and an optional rotating file) and their formats. Settings can be
built directly or derived from the 'app_settings' block stored in the
user's config.json.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

# Accepted severity names, including the common 'WARN' alias
LEVELS: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def level_from_name(name: Optional[str]) -> int:
    """Map a severity name to its numeric level; unknown names mean INFO."""
    if not name:
        return logging.INFO
    return LEVELS.get(str(name).strip().upper(), logging.INFO)


@dataclass(frozen=True)
class LoggingConfig:
    """
    Wiring of the logging subsystem.

    Attributes:
        level: Minimum severity captured by every sink.
        console: Emit records on stderr (stdout is reserved for results).
        log_file: Rotating log file path, or None for no file sink.
        max_bytes: Size at which the log file rolls over.
        backup_count: Rolled-over files kept next to the active one.
        console_fmt: Record layout on stderr.
        file_fmt: Record layout in the log file.
        datefmt: Timestamp layout in the log file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 512 * 1024
    backup_count: int = 3

    console_fmt: str = "%(levelname)s | %(name)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_app_settings(
            cls,
            app_settings: Optional[Mapping[str, Any]],
            default_log_file: Optional[str] = None,
            debug: bool = False,
    ) -> "LoggingConfig":
        """
        Derive the wiring from the persisted 'app_settings' block.

        Args:
            app_settings: Mapping with optional 'log_level' and 'log_to_file' keys.
            default_log_file: File used when 'log_to_file' is enabled.
            debug: Force DEBUG regardless of the stored level.

        Returns:
            LoggingConfig: The derived configuration.
        """
        settings = dict(app_settings or {})
        cfg = cls(level=str(settings.get("log_level") or "INFO").upper())
        if settings.get("log_to_file") and default_log_file:
            cfg = replace(cfg, log_file=default_log_file)
        if debug:
            cfg = replace(cfg, level="DEBUG")
        return cfg
