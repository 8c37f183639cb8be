from __future__ import annotations

"""
Process Entry Point.

Runs the CLI under a crash supervisor: any exception that escapes the
controller is written to the log with its full trace and reported on
stderr, and the process exits with status 1 (130 for Ctrl+C).
"""

import logging
import os
import sys
import traceback
from typing import Any

# Running 'python src/urdf_assembler/main.py' from a checkout needs 'src' on the path
_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.dirname(_PACKAGE_DIR)
if not getattr(sys, "frozen", False) and _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)

EXIT_CRASH = 1
EXIT_INTERRUPTED = 130


def crash_supervisor(exctype: type[BaseException], value: BaseException, tb: Any) -> None:
    """
    Last-chance handler for exceptions nobody caught.

    Args:
        exctype: Exception class.
        value: Exception instance.
        tb: Traceback object.
    """
    if issubclass(exctype, KeyboardInterrupt):
        print("Operation interrupted by user.", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)

    trace = "".join(traceback.format_exception(exctype, value, tb))
    logging.getLogger("urdf_assembler.supervisor").critical(f"Unhandled exception: {value}\n{trace}")

    banner = "-" * 72
    print(f"{banner}\nurdf-assembler crashed unexpectedly\n{banner}\n{trace}", file=sys.stderr)
    sys.exit(EXIT_CRASH)


sys.excepthook = crash_supervisor


def main() -> int:
    """Run the CLI controller and return its exit code."""
    try:
        from urdf_assembler.interface.cli.app import main as cli_main
        return cli_main()
    except Exception as e:
        crash_supervisor(type(e), e, e.__traceback__)
        return EXIT_CRASH


if __name__ == "__main__":
    sys.exit(main())
