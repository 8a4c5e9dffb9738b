"""
Dispatch Ledger
===============

Committed, timestamped snapshots of the unit pool:
- entries: DispatchEntry / UnitSnapshot models
- ledger: ordered, editable, delete-capable log
- store: keyed JSON persistence with corrupt-data fallback
"""

from .entries import DispatchEntry, UnitSnapshot
from .ledger import DispatchLedger, EntryNotFoundError, TIMESTAMP_FORMAT, format_timestamp
from .store import LedgerStore

__all__ = [
    "DispatchEntry",
    "UnitSnapshot",
    "DispatchLedger",
    "EntryNotFoundError",
    "TIMESTAMP_FORMAT",
    "format_timestamp",
    "LedgerStore",
]
