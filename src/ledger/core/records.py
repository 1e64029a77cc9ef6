"""Flat comma-delimited record files shared by the category and transaction stores.

Text fields are always quoted (embedded quotes doubled), numeric fields are
written bare::

    "c_food","Food",0
    "t1",-12.50,1718000000,"Corner Cafe","Food","team lunch"
"""

from __future__ import annotations

import csv
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import IO, Iterable, Sequence, Union

from ledger.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

RecordTarget = Union[str, os.PathLike, IO[str]]

# Bytes that are not valid UTF-8 survive a load/save cycle unchanged
ENCODING_ERRORS = "surrogateescape"

# Long notes can exceed the default 128 KiB field limit
csv.field_size_limit(max(csv.field_size_limit(), min(sys.maxsize, 2**31 - 1)))


def _is_path(target: RecordTarget) -> bool:
    return isinstance(target, (str, os.PathLike))


def _describe(target: RecordTarget) -> str:
    if _is_path(target):
        return str(target)
    return getattr(target, "name", type(target).__name__)


def has_undecodable(text: str) -> bool:
    """True if ``text`` carries raw bytes that were not valid UTF-8."""
    return any("\udc80" <= ch <= "\udcff" for ch in text)


def _collect(handle: Iterable[str]) -> tuple[list[list[str]], list[str]]:
    rows: list[list[str]] = []
    errors: list[str] = []
    reader = csv.reader(handle)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            # The reader resets per record, so later records still parse
            errors.append(f"Line {reader.line_num}: {exc}")
            continue
        if row:
            rows.append(row)
    return rows, errors


def read_records(source: RecordTarget) -> tuple[list[list[str]], list[str]]:
    """Read a file or text stream as lists of raw field text, one per record.

    Returns ``(records, errors)``: a record the csv module rejects is left
    out and described in ``errors``. Blank lines are dropped. Raises
    ``OSError`` (including ``FileNotFoundError``) or ``UnicodeDecodeError``
    (text streams only) when the source as a whole cannot be read.
    """
    if _is_path(source):
        with open(source, newline="", encoding="utf-8", errors=ENCODING_ERRORS) as handle:
            return _collect(handle)
    return _collect(source)


def _write_rows(handle: IO[str], rows: Iterable[Sequence[object]]) -> int:
    writer = csv.writer(handle, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    count = 0
    for row in rows:
        writer.writerow(row)
        count += 1
    return count


def write_records(target: RecordTarget, rows: Iterable[Sequence[object]]) -> int:
    """Rewrite ``target`` with ``rows`` and return the number written.

    Paths are written to a temporary sibling first and moved into place, so a
    failed write never leaves a truncated file behind. Any failure, including
    text that cannot be encoded, raises ``PersistenceError``.
    """
    if not _is_path(target):
        try:
            return _write_rows(target, rows)
        except (OSError, ValueError, csv.Error) as exc:
            raise PersistenceError(f"Could not write records to {_describe(target)}: {exc}") from exc

    path = Path(target)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            newline="",
            encoding="utf-8",
            errors=ENCODING_ERRORS,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            count = _write_rows(handle, rows)
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, ValueError, csv.Error) as exc:
        logger.error("Failed to write %s: %s", path, exc)
        raise PersistenceError(f"Could not write records to {path}: {exc}") from exc
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    logger.debug("Wrote %d records to %s", count, path)
    return count
