"""Keyword-based categorization for transactions."""

from __future__ import annotations

import logging
from typing import Optional

from ledger.core.category_store import CategoryStore
from ledger.core.models import Category, CategoryKind, Transaction

logger = logging.getLogger(__name__)

MATCH_CONFIDENCE = 0.95

# Categories the keyword map points at, created on first start.
DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="c_food", name="Food", kind=CategoryKind.EXPENSE),
    Category(id="c_trans", name="Transport", kind=CategoryKind.EXPENSE),
    Category(id="c_salary", name="Salary", kind=CategoryKind.INCOME),
)

# Ordering matters: earlier keywords win.
DEFAULT_KEYWORDS: dict[str, str] = {
    "eat": "Food",
    "meal": "Food",
    "lunch": "Food",
    "subway": "Transport",
    "bus": "Transport",
    "salary": "Salary",
}


class Categorizer:
    """Propose a category for a transaction from keywords in its text.

    Matching is a plain substring test against the raw merchant and notes,
    so keywords only match text in the same case. The first keyword found
    wins with a fixed confidence; there is no scoring.

    Constructing a categorizer never touches the store. Call
    :meth:`ensure_default_categories` once at startup to create the
    categories the keyword map refers to.
    """

    def __init__(
        self,
        categories: CategoryStore,
        keywords: Optional[dict[str, str]] = None,
    ) -> None:
        self.categories = categories
        self.keywords: dict[str, str] = dict(DEFAULT_KEYWORDS if keywords is None else keywords)

    def ensure_default_categories(self) -> list[str]:
        """Create missing default categories; existing ones are left alone.

        Returns the names that were created.
        """
        created = []
        for default in DEFAULT_CATEGORIES:
            if self.categories.find_by_name(default.name) is None:
                self.categories.save(default)
                created.append(default.name)
        if created:
            logger.info("Seeded default categories: %s", ", ".join(created))
        return created

    def auto_categorize(self, tx: Transaction) -> tuple[Optional[Category], float]:
        """Return ``(category, confidence)``, or ``(None, 0.0)`` when nothing matches."""
        for keyword, category_name in self.keywords.items():
            if keyword not in tx.merchant and keyword not in tx.notes:
                continue
            category = self.categories.find_by_name(category_name)
            if category is None:
                # Keyword points at a deleted category; keep looking.
                continue
            logger.debug("Transaction %s matched keyword %r -> %s", tx.id, keyword, category_name)
            return category, MATCH_CONFIDENCE
        return None, 0.0
