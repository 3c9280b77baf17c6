"""
Abstract interfaces for ledger backends.
"""

from .ledger_store_interface import LedgerStoreInterface

__all__ = ["LedgerStoreInterface"]
