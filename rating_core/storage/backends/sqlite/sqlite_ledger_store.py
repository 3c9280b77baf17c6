"""
SQLite implementation of the rating ledger.

Ratings live in a relational table with one row per (user_id, package_id)
pair. The pair is declared UNIQUE so concurrent first votes by the same user
cannot both succeed.
"""

import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional, Set

import aiosqlite

from rating_core.exceptions import LedgerError
from rating_core.model.rating_record import RatingRecord, LedgerAggregate
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface


TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqliteLedgerStore(LedgerStoreInterface):
    """
    SQLite-based implementation of the LedgerStoreInterface.

    Each operation opens its own aiosqlite connection, so the store can be
    shared between threads and event loops.
    """

    def __init__(self, database_path: str = "./data/ratings.db", busy_timeout: float = 5.0):
        """
        Initialize SqliteLedgerStore with database path.

        Args:
            database_path: Path to the SQLite database file
            busy_timeout: Seconds to wait for a locked database
        """
        self.database_path = Path(database_path)
        self.busy_timeout = busy_timeout
        self.logger = logging.getLogger(__name__)

        self._connected = False
        self._known_tables: Set[str] = set()

    # Connection Management
    async def connect(self) -> None:
        """Create the database file and check it can be queried."""
        if self._connected:
            return

        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self.database_path), timeout=self.busy_timeout) as db:
                await db.execute("SELECT 1")
        except (OSError, aiosqlite.Error) as e:
            self.logger.error(f"Failed to connect to SQLite ledger: {e}")
            raise LedgerError(
                f"Cannot open rating ledger: {e}", {"database_path": str(self.database_path)}
            ) from e

        self._connected = True
        self.logger.info(f"Connected to SQLite ledger at {self.database_path}")

    async def close(self) -> None:
        """Forget connection state; connections are closed after every operation."""
        self._connected = False
        self._known_tables.clear()
        self.logger.info("Disconnected from SQLite ledger")

    async def test_connection(self) -> bool:
        """Test if the database file can be opened and queried."""
        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self.database_path), timeout=self.busy_timeout) as db:
                await db.execute("SELECT 1")
            return True
        except (OSError, aiosqlite.Error) as e:
            self.logger.error(f"SQLite ledger connection test failed: {e}")
            return False

    # Rating Operations
    async def update_rating(
        self, table: str, score: int, modified: datetime, user_id: str, dataset_id: str
    ) -> int:
        context = {"table": table, "user_id": user_id, "dataset_id": dataset_id}
        async with self._connection(table, context) as db:
            cursor = await db.execute(
                f"UPDATE {table} SET rating = ?, modified = ? WHERE user_id = ? AND package_id = ?",
                (score, modified.isoformat(), user_id, dataset_id),
            )
            await db.commit()
            return cursor.rowcount

    async def insert_rating(
        self,
        table: str,
        user_id: str,
        dataset_id: str,
        score: int,
        created: datetime,
        modified: datetime,
    ) -> int:
        context = {"table": table, "user_id": user_id, "dataset_id": dataset_id}
        async with self._connection(table, context) as db:
            cursor = await db.execute(
                f"INSERT INTO {table} (user_id, package_id, rating, created, modified) "
                "VALUES (?, ?, ?, ?, ?)",
                (user_id, dataset_id, score, created.isoformat(), modified.isoformat()),
            )
            await db.commit()
            return cursor.rowcount

    async def aggregate_rating(self, table: str, dataset_id: str) -> Optional[LedgerAggregate]:
        async with self._connection(table, {"table": table, "dataset_id": dataset_id}) as db:
            cursor = await db.execute(
                f"SELECT package_id, count(*) AS count, avg(rating) AS rating FROM {table} "
                "WHERE package_id = ? GROUP BY package_id",
                (dataset_id,),
            )
            row = await cursor.fetchone()

        if not row:
            return None
        return LedgerAggregate(count=row[1], mean=Decimal(str(row[2])))

    async def get_rating(self, table: str, user_id: str, dataset_id: str) -> Optional[RatingRecord]:
        context = {"table": table, "user_id": user_id, "dataset_id": dataset_id}
        async with self._connection(table, context) as db:
            cursor = await db.execute(
                f"SELECT user_id, package_id, rating, created, modified FROM {table} "
                "WHERE user_id = ? AND package_id = ?",
                (user_id, dataset_id),
            )
            row = await cursor.fetchone()

        if not row:
            return None
        return RatingRecord(
            user_id=row[0],
            dataset_id=row[1],
            score=row[2],
            created=datetime.fromisoformat(row[3]),
            modified=datetime.fromisoformat(row[4]),
        )

    # Private helper methods
    @asynccontextmanager
    async def _connection(self, table: str, context: dict):
        """Open a connection with the rating table in place, translating driver errors."""
        if not TABLE_NAME_PATTERN.match(table or ""):
            raise LedgerError(f"Invalid rating table name: {table!r}", context)

        await self.connect()

        try:
            async with aiosqlite.connect(str(self.database_path), timeout=self.busy_timeout) as db:
                if table not in self._known_tables:
                    await self._create_table(db, table)
                    self._known_tables.add(table)
                yield db
        except aiosqlite.Error as e:
            self.logger.error(f"SQLite ledger error on {table}: {e}")
            raise LedgerError(f"Rating ledger operation failed: {e}", context) from e

    async def _create_table(self, db: aiosqlite.Connection, table: str):
        """Create the rating table if it doesn't exist."""
        await db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                user_id TEXT NOT NULL,
                package_id TEXT NOT NULL,
                rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
                created TEXT NOT NULL,
                modified TEXT NOT NULL,
                UNIQUE (user_id, package_id)
            )
        """
        )

        await db.execute(
            f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_package_id ON {table} (package_id)
        """
        )

        await db.commit()
