from __future__ import annotations

"""
Logging Lifecycle.

Installs a single QueueHandler on the root logger and drains it on a
QueueListener thread, so directory-walk workers and network fetches never
block on console or file I/O. Configuration is idempotent: a second call
is a no-op unless forced, and a forced call first dismantles the previous
wiring.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional

from urdf_assembler.infra.fs import get_user_data_dir
from urdf_assembler.infra.logging.config import LoggingConfig, level_from_name
from urdf_assembler.infra.logging.handlers import (
    build_console_sink,
    build_file_sink,
    is_owned,
    mark_owned,
)

_CONFIGURED_FLAG_ATTR: str = "_urdf_assembler_configured"
_QUEUE_LISTENER_ATTR: str = "_urdf_assembler_queue_listener"

# ==============================================================================
# PUBLIC API
# ==============================================================================

def get_default_log_path(file_name: str = "urdf_assembler.log") -> str:
    """Location of the persistent log inside the user data directory."""
    return os.path.join(get_user_data_dir(), "logs", file_name)


def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Wire the root logger according to cfg.

    Args:
        cfg: Desired sinks and severity.
        force: Rebuild the wiring even if logging was already configured.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    try:
        shutdown_logging()

        level = level_from_name(cfg.level)
        root.setLevel(level)

        sinks = _build_sinks(cfg, level)
        if not sinks:
            return root

        records: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        listener = QueueListener(records, *sinks, respect_handler_level=True)
        listener.start()
        root.addHandler(mark_owned(QueueHandler(records)))

        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        setattr(root, _CONFIGURED_FLAG_ATTR, True)
        atexit.register(_stop_listener, listener)
        return root

    except Exception:
        # Never let logging setup take the process down
        _detach_owned(root)
        emergency = logging.StreamHandler(sys.stderr)
        emergency.setFormatter(logging.Formatter("LOGGING FALLBACK | %(levelname)s | %(message)s"))
        root.addHandler(mark_owned(emergency))
        root.setLevel(logging.INFO)
        root.warning("Logging setup failed; records go straight to stderr.")
        return root


def shutdown_logging() -> None:
    """Flush and dismantle the wiring installed by configure_logging."""
    root = logging.getLogger()
    _stop_listener(getattr(root, _QUEUE_LISTENER_ATTR, None))
    setattr(root, _QUEUE_LISTENER_ATTR, None)
    _detach_owned(root)
    if hasattr(root, _CONFIGURED_FLAG_ATTR):
        delattr(root, _CONFIGURED_FLAG_ATTR)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_recent_logs(n_lines: int = 100, log_path: Optional[str] = None) -> str:
    """
    Tail of the persistent log, for bug reports.

    Args:
        n_lines: Number of trailing lines.
        log_path: Log file to read; defaults to get_default_log_path().

    Returns:
        str: The trailing lines, or a short notice if the log is unavailable.
    """
    path = log_path or get_default_log_path()
    if not os.path.exists(path):
        return "Log file not found."
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return "".join(f.readlines()[-n_lines:])
    except OSError as e:
        return f"Error retrieving logs: {e}"

# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _build_sinks(cfg: LoggingConfig, level: int) -> List[logging.Handler]:
    sinks: List[logging.Handler] = []
    if cfg.console:
        sinks.append(build_console_sink(level, cfg.console_fmt))
    if cfg.log_file:
        file_sink = build_file_sink(
            cfg.log_file, level, cfg.file_fmt, cfg.datefmt, cfg.max_bytes, cfg.backup_count
        )
        if file_sink is not None:
            sinks.append(file_sink)
    return sinks


def _detach_owned(root: logging.Logger) -> None:
    for handler in [h for h in root.handlers if is_owned(h)]:
        root.removeHandler(handler)
        handler.close()


def _stop_listener(listener: Optional[QueueListener]) -> None:
    # Stopped listeners have no thread; atexit and shutdown_logging may both get here
    if listener is not None and getattr(listener, "_thread", None) is not None:
        listener.stop()
