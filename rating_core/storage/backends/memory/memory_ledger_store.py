"""
In-process implementation of the rating ledger.

Useful for tests, dry runs and hosts that keep ratings elsewhere. Contents
are lost when the process exits.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from rating_core.exceptions import LedgerError
from rating_core.model.rating_record import RatingRecord, LedgerAggregate
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface


class MemoryLedgerStore(LedgerStoreInterface):
    """Dictionary-backed ledger keyed by table, then by (user_id, dataset_id)."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._tables: Dict[str, Dict[Tuple[str, str], RatingRecord]] = {}
        self._lock = threading.Lock()

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def test_connection(self) -> bool:
        return True

    async def update_rating(
        self, table: str, score: int, modified: datetime, user_id: str, dataset_id: str
    ) -> int:
        with self._lock:
            rows = self._tables.setdefault(table, {})
            record = rows.get((user_id, dataset_id))
            if record is None:
                return 0
            rows[(user_id, dataset_id)] = replace(record, score=score, modified=modified)
            return 1

    async def insert_rating(
        self,
        table: str,
        user_id: str,
        dataset_id: str,
        score: int,
        created: datetime,
        modified: datetime,
    ) -> int:
        with self._lock:
            rows = self._tables.setdefault(table, {})
            if (user_id, dataset_id) in rows:
                raise LedgerError(
                    "Duplicate rating row",
                    {"table": table, "user_id": user_id, "dataset_id": dataset_id},
                )
            rows[(user_id, dataset_id)] = RatingRecord(
                user_id=user_id,
                dataset_id=dataset_id,
                score=score,
                created=created,
                modified=modified,
            )
            return 1

    async def aggregate_rating(self, table: str, dataset_id: str) -> Optional[LedgerAggregate]:
        with self._lock:
            scores = [
                record.score
                for (_, rated_dataset), record in self._tables.get(table, {}).items()
                if rated_dataset == dataset_id
            ]

        if not scores:
            return None
        return LedgerAggregate(count=len(scores), mean=Decimal(sum(scores)) / Decimal(len(scores)))

    async def get_rating(self, table: str, user_id: str, dataset_id: str) -> Optional[RatingRecord]:
        with self._lock:
            return self._tables.get(table, {}).get((user_id, dataset_id))

    def count_rows(self, table: str) -> int:
        """Number of live rows in a table."""
        with self._lock:
            return len(self._tables.get(table, {}))
