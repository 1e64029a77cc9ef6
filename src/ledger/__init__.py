"""Personal finance ledger: categorized transactions in flat files."""

__version__ = "0.1.0"
