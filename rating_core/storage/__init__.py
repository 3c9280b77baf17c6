"""
Storage layer for the rating service.

This module provides the abstract ledger interface and its concrete
backends.
"""

from .interfaces.ledger_store_interface import LedgerStoreInterface
from .factory import create_ledger_store, list_available_backends, is_backend_available

__all__ = [
    "LedgerStoreInterface",
    "create_ledger_store",
    "list_available_backends",
    "is_backend_available",
]
