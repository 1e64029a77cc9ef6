"""Core module - models, stores and their flat-file persistence."""

from ledger.core.category_store import CategoryStore
from ledger.core.exceptions import CategoryNotFoundError, LedgerError, PersistenceError
from ledger.core.models import (
    UNCATEGORIZED,
    Category,
    CategoryKind,
    LoadResult,
    Transaction,
)
from ledger.core.transaction_store import TransactionStore

__all__ = [
    "UNCATEGORIZED",
    "Category",
    "CategoryKind",
    "CategoryNotFoundError",
    "CategoryStore",
    "LedgerError",
    "LoadResult",
    "PersistenceError",
    "Transaction",
    "TransactionStore",
]
