"""Tests for keyword categorization and default category seeding."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ledger.core.category_store import CategoryStore
from ledger.core.models import Category, CategoryKind, Transaction
from ledger.processing.categorizer import MATCH_CONFIDENCE, Categorizer


def _tx(merchant="", notes=""):
    return Transaction(
        id="t1",
        amount=Decimal("-9.99"),
        timestamp=datetime(2025, 6, 1, 12, 0),
        merchant=merchant,
        notes=notes,
    )


def _seeded() -> Categorizer:
    categorizer = Categorizer(CategoryStore())
    categorizer.ensure_default_categories()
    return categorizer


def test_construction_does_not_touch_the_store():
    store = CategoryStore()
    Categorizer(store)
    assert len(store) == 0


def test_ensure_default_categories_creates_missing_only_once():
    store = CategoryStore()
    categorizer = Categorizer(store)

    assert categorizer.ensure_default_categories() == ["Food", "Transport", "Salary"]
    assert categorizer.ensure_default_categories() == []

    assert store.find_by_name("Food").id == "c_food"
    assert store.find_by_name("Transport").id == "c_trans"
    assert store.find_by_name("Salary").kind == CategoryKind.INCOME


def test_ensure_default_categories_keeps_user_customizations():
    store = CategoryStore()
    store.save(Category("mine", "Food", CategoryKind.INCOME))

    created = Categorizer(store).ensure_default_categories()

    assert created == ["Transport", "Salary"]
    food = store.find_by_name("Food")
    assert food.id == "mine"
    assert food.kind == CategoryKind.INCOME


def test_lunch_maps_to_food():
    categorizer = _seeded()
    category, confidence = categorizer.auto_categorize(_tx(merchant="lunch"))

    assert category is categorizer.categories.find_by_name("Food")
    assert confidence == MATCH_CONFIDENCE == 0.95


def test_no_match_returns_none_and_zero():
    category, confidence = _seeded().auto_categorize(_tx(merchant="Hardware Store", notes="nails"))

    assert category is None
    assert confidence == 0.0


def test_keywords_match_in_notes():
    category, _ = _seeded().auto_categorize(_tx(merchant="City Transit", notes="monthly bus pass"))
    assert category.name == "Transport"


def test_matching_is_case_sensitive():
    category, confidence = _seeded().auto_categorize(_tx(merchant="LUNCH SPOT"))
    assert (category, confidence) == (None, 0.0)


def test_first_keyword_in_map_order_wins():
    store = CategoryStore()
    categorizer = Categorizer(store, keywords={"bus": "Transport", "salary": "Salary"})
    categorizer.ensure_default_categories()

    category, _ = categorizer.auto_categorize(_tx(merchant="salary bus"))
    assert category.name == "Transport"


def test_keyword_for_deleted_category_is_skipped():
    categorizer = _seeded()
    categorizer.categories.remove("Food")

    category, confidence = categorizer.auto_categorize(_tx(merchant="lunch near subway"))

    assert category.name == "Transport"
    assert confidence == 0.95


def test_categorizer_does_not_modify_transaction():
    tx = _tx(merchant="lunch")
    _seeded().auto_categorize(tx)
    assert tx.category is None
