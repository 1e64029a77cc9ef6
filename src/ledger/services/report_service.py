"""Read-only aggregations over the transaction store, plus CSV export."""

from __future__ import annotations

import csv
from decimal import Decimal
from io import StringIO
from typing import Iterable, NamedTuple

from ledger.core.models import UNCATEGORIZED, Transaction
from ledger.core.transaction_store import TransactionStore


class IncomeExpense(NamedTuple):
    income: Decimal
    expense: Decimal

    @property
    def difference(self) -> Decimal:
        return self.income - self.expense


def _breakdown(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        name = tx.category.name if tx.category else UNCATEGORIZED
        totals[name] = totals.get(name, Decimal("0")) + abs(tx.amount)
    return totals


def _split_by_sign(transactions: Iterable[Transaction]) -> IncomeExpense:
    # Sign only: the category kind is deliberately ignored here.
    income = Decimal("0")
    expense = Decimal("0")
    for tx in transactions:
        if tx.amount >= 0:
            income += tx.amount
        else:
            expense += -tx.amount
    return IncomeExpense(income, expense)


class ReportService:
    """Balance and spending reports.

    Every call recomputes from a fresh snapshot of the store; nothing is
    cached and the store is never modified.
    """

    def __init__(self, transactions: TransactionStore) -> None:
        self.transactions = transactions

    def balance(self) -> Decimal:
        return sum((tx.amount for tx in self.transactions.find_all()), Decimal("0"))

    def category_breakdown(self, year: int, month: int) -> dict[str, Decimal]:
        """Absolute amount per category name for one calendar month."""
        return _breakdown(self.transactions.find_by_period(year, month))

    def category_breakdown_year(self, year: int) -> dict[str, Decimal]:
        return _breakdown(self.transactions.find_by_year(year))

    def category_breakdown_all(self) -> dict[str, Decimal]:
        return _breakdown(self.transactions.find_all())

    def income_expense_totals(self, year: int, month: int | None = None) -> IncomeExpense:
        """Income and expense magnitudes for a month, or a whole year when ``month`` is None."""
        if month is None:
            return self.income_expense_totals_year(year)
        return _split_by_sign(self.transactions.find_by_period(year, month))

    def income_expense_totals_year(self, year: int) -> IncomeExpense:
        return _split_by_sign(self.transactions.find_by_year(year))


def export_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """Export transactions to CSV string."""
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(
        [
            "id",
            "timestamp",
            "amount",
            "merchant",
            "category",
            "notes",
        ]
    )
    for tx in transactions:
        writer.writerow(
            [
                tx.id,
                tx.timestamp.isoformat(),
                str(tx.amount),
                tx.merchant,
                tx.category.name if tx.category else "",
                tx.notes,
            ]
        )
    return output.getvalue()
