"""
SQLite ledger backend implementation.

This module provides a durable, file-backed rating ledger built on aiosqlite.
"""

from .sqlite_ledger_store import SqliteLedgerStore

__all__ = ["SqliteLedgerStore"]
