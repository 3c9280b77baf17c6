"""
In-process ledger backend implementation.
"""

from .memory_ledger_store import MemoryLedgerStore

__all__ = ["MemoryLedgerStore"]
