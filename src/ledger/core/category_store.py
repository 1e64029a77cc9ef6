"""In-memory category store keyed by name, backed by a flat record file."""

from __future__ import annotations

import logging
from typing import Optional

from ledger.core.models import Category, CategoryKind, LoadResult
from ledger.core.records import RecordTarget, has_undecodable, read_records, write_records

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = 3


def _parse_kind(raw: str) -> CategoryKind:
    """Map the stored integer to a kind; anything but 1 is an expense."""
    try:
        value = int(raw.strip())
    except ValueError:
        return CategoryKind.EXPENSE
    return CategoryKind.INCOME if value == CategoryKind.INCOME.value else CategoryKind.EXPENSE


class CategoryStore:
    """Sole owner of the ledger's categories.

    Transactions hold references to the instances returned by :meth:`save`
    and :meth:`find_by_name`. The store knows nothing about transactions, so
    removing a category does not touch them; see
    ``LedgerService.remove_category`` for the cascading delete.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, Category] = {}

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def find_by_name(self, name: str) -> Optional[Category]:
        return self._by_name.get(name)

    def save(self, category: Category) -> Category:
        """Insert or overwrite by name and return the stored instance.

        Overwriting updates the existing instance in place, so transactions
        already pointing at it keep referencing a live category.
        """
        existing = self._by_name.get(category.name)
        if existing is not None:
            logger.debug("Overwriting category %r", category.name)
            existing.id = category.id
            existing.kind = CategoryKind(category.kind)
            return existing
        stored = Category(id=category.id, name=category.name, kind=CategoryKind(category.kind))
        self._by_name[category.name] = stored
        return stored

    def all(self) -> list[Category]:
        return list(self._by_name.values())

    def remove(self, name: str) -> bool:
        if name not in self._by_name:
            return False
        del self._by_name[name]
        logger.debug("Removed category %r", name)
        return True

    def ids(self) -> set[str]:
        return {category.id for category in self._by_name.values()}

    # Persistence

    def serialize(self, target: RecordTarget) -> int:
        """Rewrite ``target`` with one ``id,name,kind`` record per category.

        Raises ``PersistenceError`` if the file cannot be written.
        """
        rows = [
            (category.id, category.name, category.kind.value)
            for category in self._by_name.values()
        ]
        return write_records(target, rows)

    def deserialize(self, source: RecordTarget) -> LoadResult:
        """Load categories from ``source`` into this store (last write wins).

        A missing source is treated as an empty one. A source that exists but
        cannot be read at all loads nothing and marks the result ``failed``.
        """
        result = LoadResult()
        try:
            records, errors = read_records(source)
        except FileNotFoundError:
            logger.info("No category file at %s yet", source)
            return result
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read categories from %s: %s", source, exc)
            result.failed = True
            result.warnings.append(f"Unreadable category source: {exc}")
            return result

        result.items_skipped += len(errors)
        result.warnings.extend(errors)

        for line_no, fields in enumerate(records, start=1):
            if len(fields) < CATEGORY_FIELDS:
                result.items_skipped += 1
                result.warnings.append(
                    f"Record {line_no}: expected {CATEGORY_FIELDS} fields, got {len(fields)}"
                )
                continue
            category_id, name, raw_kind = fields[0], fields[1], fields[2]
            kind = _parse_kind(raw_kind)
            if raw_kind.strip() not in ("0", "1"):
                logger.debug("Record %d: kind %r defaulted to expense", line_no, raw_kind)
                result.warnings.append(f"Record {line_no}: unknown kind {raw_kind!r}, using expense")
            if has_undecodable(name):
                result.warnings.append(f"Record {line_no}: name is not valid UTF-8, kept as raw bytes")
            self.save(Category(id=category_id, name=name, kind=kind))
            result.items_loaded += 1

        logger.info(
            "Loaded %d categories (%d skipped)", result.items_loaded, result.items_skipped
        )
        return result
