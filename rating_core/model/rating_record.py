"""
Rating record module for rows held by the rating ledger.

A ledger holds at most one live record per (user_id, dataset_id) pair; a
later vote by the same user overwrites ``score`` and ``modified`` while
``created`` stays fixed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class RatingRecord:
    """A single user's vote on a dataset."""

    user_id: str
    dataset_id: str
    score: int
    created: datetime
    modified: datetime


@dataclass(frozen=True)
class LedgerAggregate:
    """
    Grouped aggregate for one dataset as reported by a ledger store.

    ``count`` and ``mean`` keep the store's own numeric types (wide integers,
    arbitrary-precision decimals); the engine converts them explicitly.
    """

    count: int
    mean: Decimal
