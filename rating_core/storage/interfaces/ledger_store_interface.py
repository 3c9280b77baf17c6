"""
Abstract interface for rating ledger backends.

This module defines the contract that all ledger implementations must follow
so the rating engine behaves the same against every backend.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional

from rating_core.model.rating_record import RatingRecord, LedgerAggregate


class LedgerStoreInterface(ABC):
    """
    Abstract base class for rating ledger backends.

    A ledger keeps one rating row per (user_id, dataset_id) pair in a named
    table. Backends must enforce uniqueness of that pair so the
    update-then-insert upsert performed by the engine cannot create duplicates.
    """

    # Connection Management
    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the ledger backend."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connection to the ledger backend."""
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test if the ledger backend is reachable."""
        pass

    # Rating Operations
    @abstractmethod
    async def update_rating(
        self, table: str, score: int, modified: datetime, user_id: str, dataset_id: str
    ) -> int:
        """
        Overwrite the score of an existing (user_id, dataset_id) row.

        Args:
            table: Rating table name
            score: New score
            modified: Modification timestamp
            user_id: Rating user
            dataset_id: Rated dataset

        Returns:
            Number of rows affected (0 when the user has not rated the dataset yet)
        """
        pass

    @abstractmethod
    async def insert_rating(
        self,
        table: str,
        user_id: str,
        dataset_id: str,
        score: int,
        created: datetime,
        modified: datetime,
    ) -> int:
        """
        Insert a new rating row.

        Returns:
            Number of rows affected

        Raises:
            LedgerError: If the row cannot be inserted (including a duplicate key)
        """
        pass

    @abstractmethod
    async def aggregate_rating(self, table: str, dataset_id: str) -> Optional[LedgerAggregate]:
        """
        Count and average the ratings of a dataset.

        Returns:
            The aggregate, or None if the dataset has no ratings
        """
        pass

    @abstractmethod
    async def get_rating(self, table: str, user_id: str, dataset_id: str) -> Optional[RatingRecord]:
        """Retrieve the live rating of a user on a dataset, if any."""
        pass

    # Synchronous versions used by the rating engine
    def connect_sync(self) -> None:
        """Establish connection to the ledger backend (synchronous)."""
        return self._run_async_in_sync_context(self.connect())

    def close_sync(self) -> None:
        """Close connection to the ledger backend (synchronous)."""
        return self._run_async_in_sync_context(self.close())

    def test_connection_sync(self) -> bool:
        """Test if the ledger backend is reachable (synchronous)."""
        return self._run_async_in_sync_context(self.test_connection())

    def update_rating_sync(
        self, table: str, score: int, modified: datetime, user_id: str, dataset_id: str
    ) -> int:
        """Overwrite an existing rating (synchronous)."""
        return self._run_async_in_sync_context(
            self.update_rating(table, score, modified, user_id, dataset_id)
        )

    def insert_rating_sync(
        self,
        table: str,
        user_id: str,
        dataset_id: str,
        score: int,
        created: datetime,
        modified: datetime,
    ) -> int:
        """Insert a new rating (synchronous)."""
        return self._run_async_in_sync_context(
            self.insert_rating(table, user_id, dataset_id, score, created, modified)
        )

    def aggregate_rating_sync(self, table: str, dataset_id: str) -> Optional[LedgerAggregate]:
        """Aggregate the ratings of a dataset (synchronous)."""
        return self._run_async_in_sync_context(self.aggregate_rating(table, dataset_id))

    def get_rating_sync(self, table: str, user_id: str, dataset_id: str) -> Optional[RatingRecord]:
        """Retrieve a single rating (synchronous)."""
        return self._run_async_in_sync_context(self.get_rating(table, user_id, dataset_id))

    def _run_async_in_sync_context(self, coroutine):
        """Run an async coroutine to completion on a private event loop."""

        def run_in_thread():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            try:
                return loop.run_until_complete(coroutine)
            finally:
                loop.close()

        # A worker thread keeps this usable from inside a running event loop
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(run_in_thread)
            try:
                return future.result()
            except Exception as e:
                logging.getLogger(__name__).debug(f"Ledger call failed in sync context: {e}")
                raise
