"""Import bank-style CSV exports into the ledger."""

from __future__ import annotations

import csv
import logging
import os
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser

from ledger.core.models import LoadResult, Transaction
from ledger.core.records import RecordTarget
from ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

DESCRIPTION_FIELDS = ("merchant", "description", "narration", "payee")


def _normalize_row(row: dict) -> dict[str, str]:
    """Lower-case, trimmed header names; missing values become empty strings."""
    return {
        (key or "").strip().lower(): (value or "").strip()
        for key, value in row.items()
        if key is not None
    }


def _parse_amount(raw: str) -> Decimal:
    return Decimal(raw.replace(",", "") or "0")


def _row_to_transaction(row: dict[str, str]) -> Transaction:
    """Map a normalized CSV row to an unsaved Transaction.

    Raises ``ValueError`` (or ``InvalidOperation``) for rows that cannot be used.
    """
    date_str = row.get("date", "")
    if not date_str:
        raise ValueError("missing date")
    timestamp: datetime = date_parser.parse(date_str)

    amount = _parse_amount(row.get("amount", ""))
    if not amount.is_finite():
        raise ValueError(f"invalid amount {row.get('amount')!r}")

    # Optional DR/CR column overrides the sign
    indicator = row.get("type", "").upper()
    if indicator.startswith(("DR", "DEBIT")):
        amount = -abs(amount)
    elif indicator.startswith(("CR", "CREDIT")):
        amount = abs(amount)

    merchant = next((row[f] for f in DESCRIPTION_FIELDS if row.get(f)), "")

    return Transaction(
        id=row.get("id", ""),
        amount=amount,
        timestamp=timestamp,
        merchant=merchant,
        notes=row.get("notes", ""),
    )


def parse_bank_csv(source: RecordTarget) -> tuple[list[Transaction], LoadResult]:
    """Parse a headered CSV (``date``, ``amount``, a description column, optional ``notes``/``type``/``id``).

    Unusable rows are skipped and reported in the returned ``LoadResult``.
    """
    result = LoadResult()
    parsed: list[Transaction] = []

    try:
        if isinstance(source, (str, os.PathLike)):
            with open(source, newline="", encoding="utf-8-sig") as handle:
                rows = list(csv.DictReader(handle))
        else:
            rows = list(csv.DictReader(source))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.warning("Could not read import file %s: %s", source, exc)
        result.warnings.append(f"Unreadable import source: {exc}")
        return parsed, result

    # Header is line 1
    for line_no, raw_row in enumerate(rows, start=2):
        row = _normalize_row(raw_row)
        try:
            parsed.append(_row_to_transaction(row))
        except (ValueError, OverflowError, InvalidOperation) as exc:
            result.items_skipped += 1
            result.warnings.append(f"Line {line_no}: {str(exc) or type(exc).__name__}")
            continue
        result.items_loaded += 1

    logger.info("Parsed %d rows from import file (%d skipped)", result.items_loaded, result.items_skipped)
    return parsed, result


def import_bank_csv(
    service: LedgerService,
    source: RecordTarget,
    confidence_threshold: Optional[float] = None,
) -> tuple[list[Transaction], LoadResult]:
    """Parse ``source`` and run the rows through ``LedgerService.import_transactions``.

    Rows without an ``id`` column get fresh ``t<n>`` ids. Returns the stored
    transactions and the parse result; persisting is left to the caller.
    """
    parsed, result = parse_bank_csv(source)

    assigned: list[str] = []
    for tx in parsed:
        if not tx.id:
            tx.id = service.next_transaction_id(reserved=assigned)
        assigned.append(tx.id)

    stored = service.import_transactions(parsed, confidence_threshold=confidence_threshold)
    return stored, result
