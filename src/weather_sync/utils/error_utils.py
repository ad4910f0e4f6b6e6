"""Utility functions for error handling and reporting.

Provides functions for extracting information from exceptions and
enhancing error messages with file and line information.
"""

import sys
import traceback
from pathlib import Path


def get_error_location() -> str:
    """Extract the file name and line number from the exception being handled.

    Walks to the innermost frame of the active traceback, which is where the
    error was raised.

    Returns:
        String formatted as "filename:line_number", or "unknown:0" when
        called outside an ``except`` block.
    """
    _, _, tb = sys.exc_info()
    if tb is None:
        return "unknown:0"

    frames = traceback.extract_tb(tb)
    if not frames:
        return "unknown:0"

    last = frames[-1]
    return f"{Path(last.filename).name}:{last.lineno}"
