"""Operator-facing diagnostics on stderr."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_logging_initialized: bool = False


def setup_logging(verbose: bool = False) -> None:
    """Attach a stderr handler to the ``taskaccess`` logger.

    This is idempotent - later calls only adjust the level.
    """
    global _logging_initialized

    package_logger = logging.getLogger("taskaccess")
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if _logging_initialized:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.propagate = False
    _logging_initialized = True
