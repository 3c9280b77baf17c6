"""
Ledger backend implementations.

This module contains concrete implementations of the ledger store interface.
"""

from .memory import MemoryLedgerStore
from .sqlite import SqliteLedgerStore

__all__ = ["MemoryLedgerStore", "SqliteLedgerStore"]
