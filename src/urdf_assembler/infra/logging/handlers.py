from __future__ import annotations

"""
Logging Sinks.

Factories for the stderr and rotating-file sinks fed by the queue
listener. Every sink built here carries an ownership mark so that a
reconfiguration only removes what the assembler installed itself and
leaves handlers of host applications (or pytest) alone.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

_HANDLER_TAG_ATTR: str = "_urdf_assembler_handler"


def mark_owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG_ATTR, True)
    return handler


def is_owned(handler: logging.Handler) -> bool:
    return bool(getattr(handler, _HANDLER_TAG_ATTR, False))


def build_console_sink(level: int, fmt: str) -> logging.Handler:
    """A stderr sink; stdout stays free for results and JSON output."""
    sink = logging.StreamHandler(sys.stderr)
    sink.setLevel(level)
    sink.setFormatter(logging.Formatter(fmt))
    return mark_owned(sink)


def build_file_sink(
        path: str,
        level: int,
        fmt: str,
        datefmt: str,
        max_bytes: int,
        backup_count: int,
) -> Optional[logging.Handler]:
    """
    Open a rotating log file sink.

    Args:
        path: Log file location; missing parent folders are created.
        level: Numeric minimum level.
        fmt: Record layout.
        datefmt: Timestamp layout.
        max_bytes: Rollover size.
        backup_count: Rolled-over files to keep.

    Returns:
        Optional[logging.Handler]: The sink, or None if the file cannot be opened.
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        sink = RotatingFileHandler(
            path,
            maxBytes=int(max_bytes),
            backupCount=int(backup_count),
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not up yet, so report straight to stderr
        sys.stderr.write(f"WARNING: Log file '{path}' unavailable, continuing without it: {e}\n")
        return None

    sink.setLevel(level)
    sink.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return mark_owned(sink)
