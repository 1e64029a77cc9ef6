"""Tests for the shared logging setup."""

from __future__ import annotations

import logging
from io import StringIO

from ledger.core.logger import setup_logging


def test_repeated_setup_keeps_a_single_handler():
    root = logging.getLogger()
    previous_level = root.level
    first, second = StringIO(), StringIO()
    try:
        setup_logging("INFO", stream=first)
        count = len(root.handlers)
        setup_logging("DEBUG", stream=second)

        assert len(root.handlers) == count

        logging.getLogger("ledger.tests").debug("written once")
        assert "written once" in second.getvalue()
        assert first.getvalue() == ""
    finally:
        root.setLevel(previous_level)
