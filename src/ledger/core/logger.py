"""
Shared logging utilities.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handler: Optional[logging.StreamHandler] = None


def setup_logging(level: str = "WARNING", stream: Optional[object] = None) -> None:
    """
    Send log output to a single console handler, replacing any earlier one.

    Args:
        level: Log level name ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        stream: Destination stream, stderr when omitted
    """
    global _handler

    log_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Repeated CLI invocations in one process must not stack handlers
    if _handler is not None:
        root_logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setLevel(log_level)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(_handler)
