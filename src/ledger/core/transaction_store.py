"""Ordered in-memory transaction store, backed by a flat record file."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterator, Optional, Protocol

from ledger.core.models import Category, LoadResult, Transaction
from ledger.core.records import RecordTarget, has_undecodable, read_records, write_records

logger = logging.getLogger(__name__)

TRANSACTION_FIELDS = 6


class CategoryResolver(Protocol):
    def find_by_name(self, name: str) -> Optional[Category]:
        ...


def _parse_amount(raw: str) -> Decimal | None:
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _parse_epoch(raw: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(raw.strip()))
    except (ValueError, OverflowError, OSError):
        return None


class TransactionStore:
    """Sole owner of the ledger's transactions, kept in insertion order.

    Every query returns a fresh list; the store itself is only changed by
    :meth:`save`, :meth:`clear_category_reference` and :meth:`deserialize`.
    """

    def __init__(self) -> None:
        self._transactions: list[Transaction] = []

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._transactions))

    def save(self, transaction: Transaction) -> Transaction:
        """Append ``transaction``; ids are not deduplicated."""
        self._transactions.append(transaction)
        return transaction

    def clear_category_reference(self, category_name: str) -> int:
        """Uncategorize every transaction pointing at ``category_name``.

        Returns the number of transactions that changed.
        """
        cleared = 0
        for tx in self._transactions:
            if tx.category is not None and tx.category.name == category_name:
                tx.category = None
                cleared += 1
        if cleared:
            logger.debug("Cleared category %r from %d transactions", category_name, cleared)
        return cleared

    def find_all(self) -> list[Transaction]:
        return list(self._transactions)

    def find_by_id(self, transaction_id: str) -> list[Transaction]:
        return [tx for tx in self._transactions if tx.id == transaction_id]

    def find_by_period(self, year: int, month: int) -> list[Transaction]:
        """Transactions whose timestamp falls in calendar ``month`` (1-12) of ``year``."""
        return [
            tx
            for tx in self._transactions
            if tx.timestamp.year == year and tx.timestamp.month == month
        ]

    def find_by_year(self, year: int) -> list[Transaction]:
        return [tx for tx in self._transactions if tx.timestamp.year == year]

    def find_by_category(self, name: str) -> list[Transaction]:
        return [
            tx
            for tx in self._transactions
            if tx.category is not None and tx.category.name == name
        ]

    def search_by_keyword(self, keyword: str) -> list[Transaction]:
        """Case-sensitive substring match against merchant or notes."""
        return [
            tx
            for tx in self._transactions
            if keyword in tx.merchant or keyword in tx.notes
        ]

    # Persistence

    def serialize(self, target: RecordTarget) -> int:
        """Rewrite ``target`` with one record per transaction.

        Record layout: ``id, amount, epoch seconds, merchant, category name
        (empty when uncategorized), notes``. Raises ``PersistenceError`` if
        the file cannot be written.
        """
        rows = [
            (
                tx.id,
                tx.amount,
                int(tx.timestamp.timestamp()),
                tx.merchant,
                tx.category.name if tx.category else "",
                tx.notes,
            )
            for tx in self._transactions
        ]
        return write_records(target, rows)

    def deserialize(
        self,
        source: RecordTarget,
        resolver: Optional[CategoryResolver] = None,
    ) -> LoadResult:
        """Append transactions read from ``source``.

        Category names are resolved through ``resolver`` when given; a name
        with no matching category leaves the transaction uncategorized. Bad
        amounts fall back to 0 and bad timestamps to the current time. A
        source that exists but cannot be read marks the result ``failed``.
        """
        result = LoadResult()
        try:
            records, errors = read_records(source)
        except FileNotFoundError:
            logger.info("No transaction file at %s yet", source)
            return result
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read transactions from %s: %s", source, exc)
            result.failed = True
            result.warnings.append(f"Unreadable transaction source: {exc}")
            return result

        result.items_skipped += len(errors)
        result.warnings.extend(errors)

        for line_no, fields in enumerate(records, start=1):
            if len(fields) < TRANSACTION_FIELDS:
                result.items_skipped += 1
                result.warnings.append(
                    f"Record {line_no}: expected {TRANSACTION_FIELDS} fields, got {len(fields)}"
                )
                continue

            tx_id, raw_amount, raw_epoch, merchant, category_name, notes = fields[:TRANSACTION_FIELDS]

            amount = _parse_amount(raw_amount)
            if amount is None:
                logger.debug("Record %d: amount %r defaulted to 0", line_no, raw_amount)
                result.warnings.append(f"Record {line_no}: invalid amount {raw_amount!r}, using 0")
                amount = Decimal("0")

            timestamp = _parse_epoch(raw_epoch)
            if timestamp is None:
                logger.debug("Record %d: timestamp %r defaulted to now", line_no, raw_epoch)
                result.warnings.append(
                    f"Record {line_no}: invalid timestamp {raw_epoch!r}, using current time"
                )
                timestamp = datetime.now().replace(microsecond=0)

            category = None
            if resolver is not None and category_name:
                category = resolver.find_by_name(category_name)
                if category is None:
                    result.warnings.append(
                        f"Record {line_no}: unknown category {category_name!r}, left uncategorized"
                    )

            if has_undecodable(merchant) or has_undecodable(notes):
                result.warnings.append(f"Record {line_no}: text is not valid UTF-8, kept as raw bytes")

            self._transactions.append(
                Transaction(
                    id=tx_id,
                    amount=amount,
                    timestamp=timestamp,
                    merchant=merchant,
                    category=category,
                    notes=notes,
                )
            )
            result.items_loaded += 1

        logger.info(
            "Loaded %d transactions (%d skipped)", result.items_loaded, result.items_skipped
        )
        return result
