"""Domain models for the ledger: categories, transactions and load results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


UNCATEGORIZED = "Uncategorized"


class CategoryKind(int, Enum):
    """Whether a category collects spending or earnings.

    The integer value is what the flat record format stores.
    """

    EXPENSE = 0
    INCOME = 1


@dataclass
class Category:
    """A named bucket for transactions, unique by name within a store."""

    id: str
    name: str
    kind: CategoryKind = CategoryKind.EXPENSE

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


@dataclass
class Transaction:
    """A single monetary movement.

    ``category`` is a shared reference to the instance held by the category
    store, never a private copy.
    """

    id: str
    amount: Decimal
    timestamp: datetime
    merchant: str = ""
    category: Optional[Category] = None
    notes: str = ""

    def __post_init__(self) -> None:
        # Floats and ints become exact decimals of their printed value
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None

    @property
    def is_income(self) -> bool:
        # Category kind wins; amount sign only decides uncategorized rows.
        if self.category is not None:
            return self.category.kind == CategoryKind.INCOME
        return self.amount > 0

    def copy(self) -> "Transaction":
        """Shallow copy that keeps the shared category reference."""
        return replace(self)

    def __repr__(self) -> str:
        return f"<Transaction {self.id} {self.amount} {self.merchant!r}>"


@dataclass
class LoadResult:
    """Outcome of reading a flat record file into a store."""

    items_loaded: int = 0
    items_skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    # The source exists but could not be read; saving over it would lose data
    failed: bool = False

    @property
    def clean(self) -> bool:
        return not self.failed and self.items_skipped == 0 and not self.warnings
