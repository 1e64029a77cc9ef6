"""High-level ledger operations tying the stores and the categorizer together."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ledger.core.category_store import CategoryStore
from ledger.core.config import Settings, settings as default_settings
from ledger.core.exceptions import CategoryNotFoundError, PersistenceError
from ledger.core.models import Category, CategoryKind, LoadResult, Transaction
from ledger.core.transaction_store import TransactionStore
from ledger.processing.categorizer import Categorizer

logger = logging.getLogger(__name__)


class LedgerService:
    """Entry point used by the CLI and import code.

    Owns one category store, one transaction store and a categorizer bound
    to the category store. Anything that has to touch both stores at once
    (deleting a category, loading, saving) goes through here.
    """

    def __init__(
        self,
        categories: CategoryStore,
        transactions: TransactionStore,
        categorizer: Optional[Categorizer] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.categories = categories
        self.transactions = transactions
        self.categorizer = categorizer or Categorizer(categories)
        self.config = config or default_settings
        self.load_results: dict[str, LoadResult] = {}

    @classmethod
    def open(cls, config: Optional[Settings] = None) -> "LedgerService":
        """Load both files and seed default categories.

        Categories are read first so user-edited defaults are not replaced,
        then seeded, then transactions are read and resolved against them.
        """
        config = config or default_settings
        categories = CategoryStore()
        category_result = categories.deserialize(config.categories_path)

        categorizer = Categorizer(categories)
        categorizer.ensure_default_categories()

        transactions = TransactionStore()
        transaction_result = transactions.deserialize(config.transactions_path, resolver=categories)

        service = cls(categories, transactions, categorizer=categorizer, config=config)
        service.load_results = {
            "categories": category_result,
            "transactions": transaction_result,
        }
        return service

    @property
    def unreadable_sources(self) -> list[str]:
        """Names of the files that existed but could not be loaded."""
        return [name for name, result in self.load_results.items() if result.failed]

    def persist(self) -> None:
        """Rewrite both files. Raises ``PersistenceError`` on failure.

        Nothing is written when either file failed to load.
        """
        unreadable = self.unreadable_sources
        if unreadable:
            raise PersistenceError(
                f"Refusing to overwrite {', '.join(unreadable)}: the existing file could not be read"
            )
        self.categories.serialize(self.config.categories_path)
        self.transactions.serialize(self.config.transactions_path)
        logger.info(
            "Saved %d categories and %d transactions to %s",
            len(self.categories),
            len(self.transactions),
            self.config.DATA_DIR,
        )

    # Transactions

    def next_transaction_id(self, reserved: Iterable[str] = ()) -> str:
        """Next free ``t<n>`` id, also avoiding ids in ``reserved``."""
        n = len(self.transactions) + 1
        taken = {tx.id for tx in self.transactions.find_all()} | set(reserved)
        while f"t{n}" in taken:
            n += 1
        return f"t{n}"

    def add_transaction(self, tx: Transaction) -> Transaction:
        """Store ``tx`` as given, without categorization."""
        return self.transactions.save(tx)

    def import_transactions(
        self,
        transactions: Iterable[Transaction],
        confidence_threshold: Optional[float] = None,
    ) -> list[Transaction]:
        """Auto-categorize and store copies of ``transactions``.

        A proposed category is attached only when its confidence reaches the
        threshold (``CONFIDENCE_THRESHOLD`` from settings when omitted). The
        caller's objects are never modified. Returns the stored copies.
        """
        threshold = self.config.CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold

        stored = []
        categorized = 0
        for tx in transactions:
            category, confidence = self.categorizer.auto_categorize(tx)
            copy = tx.copy()
            if copy.category is not None:
                # Only keep references the category store actually owns.
                copy.category = self.categories.find_by_name(copy.category.name)
            if category is not None and confidence >= threshold:
                copy.category = category
                categorized += 1
            stored.append(self.transactions.save(copy))

        logger.info(
            "Imported %d transactions (%d auto-categorized, threshold %.2f)",
            len(stored),
            categorized,
            threshold,
        )
        return stored

    def assign_category(self, transaction_id: str, category_name: Optional[str]) -> int:
        """Manually set (or clear, with ``None``) the category of a transaction id.

        Returns the number of transactions changed.
        """
        category = None
        if category_name is not None:
            category = self.categories.find_by_name(category_name)
            if category is None:
                raise CategoryNotFoundError(f"Unknown category: {category_name}")

        matches = self.transactions.find_by_id(transaction_id)
        for tx in matches:
            tx.category = category
        return len(matches)

    def search_by_category(self, name: str) -> list[Transaction]:
        return self.transactions.find_by_category(name)

    def search_by_keyword(self, keyword: str) -> list[Transaction]:
        return self.transactions.search_by_keyword(keyword)

    # Categories

    def next_category_id(self) -> str:
        n = len(self.categories) + 1
        taken = self.categories.ids()
        while f"c_{n}" in taken:
            n += 1
        return f"c_{n}"

    def add_category(self, name: str, kind: CategoryKind = CategoryKind.EXPENSE) -> Category:
        existing = self.categories.find_by_name(name)
        category_id = existing.id if existing else self.next_category_id()
        return self.categories.save(Category(id=category_id, name=name, kind=kind))

    def remove_category(self, name: str) -> bool:
        """Delete a category and uncategorize every transaction that used it."""
        if not self.categories.remove(name):
            return False
        cleared = self.transactions.clear_category_reference(name)
        logger.info("Removed category %r; %d transactions now uncategorized", name, cleared)
        return True
