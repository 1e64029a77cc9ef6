"""Domain-specific exceptions for the ledger core."""


class LedgerError(Exception):
    """Base class for all ledger errors."""


class PersistenceError(LedgerError, OSError):
    """Raised when a store cannot write its backing file."""


class CategoryNotFoundError(LedgerError, LookupError):
    """Raised when an explicit category assignment names an unknown category."""
