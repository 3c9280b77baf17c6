"""
Tests for the rating ledger backends.

This module tests the SqliteLedgerStore, the MemoryLedgerStore and the
LedgerStoreFactory to ensure they implement the LedgerStoreInterface correctly.
"""
import asyncio
import os
import unittest
import tempfile
import shutil
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

from rating_core.config.config_manager import ConfigManager
from rating_core.exceptions import LedgerError
from rating_core.model.rating_record import LedgerAggregate, RatingRecord
from rating_core.storage.interfaces.ledger_store_interface import LedgerStoreInterface
from rating_core.storage.backends.memory import MemoryLedgerStore
from rating_core.storage.backends.sqlite import SqliteLedgerStore
from rating_core.storage.factory import create_ledger_store, list_available_backends, is_backend_available

TABLE = "rating"


class LedgerStoreContract:
    """Behaviour shared by every ledger backend."""

    def create_store(self) -> LedgerStoreInterface:
        raise NotImplementedError

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.store = self.create_store()
        self.created = datetime(2014, 6, 1, 12, 0, tzinfo=timezone.utc)
        self.later = self.created + timedelta(hours=1)

    def tearDown(self):
        """Clean up test fixtures."""
        self.store.close_sync()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _insert(self, user_id, dataset_id, score):
        return self.store.insert_rating_sync(
            TABLE, user_id, dataset_id, score, self.created, self.created
        )

    def test_interface_compliance(self):
        self.assertIsInstance(self.store, LedgerStoreInterface)
        self.assertTrue(self.store.test_connection_sync())

    def test_update_without_row_affects_nothing(self):
        updated = self.store.update_rating_sync(TABLE, 3, self.later, "alice", "bus-stops")

        self.assertEqual(updated, 0)
        self.assertIsNone(self.store.get_rating_sync(TABLE, "alice", "bus-stops"))

    def test_insert_then_update(self):
        self.assertEqual(self._insert("alice", "bus-stops", 2), 1)

        updated = self.store.update_rating_sync(TABLE, 5, self.later, "alice", "bus-stops")
        self.assertEqual(updated, 1)

        record = self.store.get_rating_sync(TABLE, "alice", "bus-stops")
        self.assertIsInstance(record, RatingRecord)
        self.assertEqual(record.score, 5)
        self.assertEqual(record.created, self.created)
        self.assertEqual(record.modified, self.later)

    def test_duplicate_insert_is_rejected(self):
        self._insert("alice", "bus-stops", 2)

        with self.assertRaises(LedgerError):
            self._insert("alice", "bus-stops", 4)

        self.assertEqual(self.store.get_rating_sync(TABLE, "alice", "bus-stops").score, 2)

    def test_aggregate_for_unrated_dataset(self):
        self._insert("alice", "bus-stops", 2)

        self.assertIsNone(self.store.aggregate_rating_sync(TABLE, "air-quality-2014"))

    def test_aggregate_groups_by_dataset(self):
        self._insert("alice", "bus-stops", 5)
        self._insert("bob", "bus-stops", 4)
        self._insert("carol", "bus-stops", 2)
        self._insert("alice", "air-quality-2014", 1)

        aggregate = self.store.aggregate_rating_sync(TABLE, "bus-stops")

        self.assertIsInstance(aggregate, LedgerAggregate)
        self.assertEqual(aggregate.count, 3)
        self.assertIsInstance(aggregate.mean, Decimal)
        self.assertAlmostEqual(float(aggregate.mean), 11 / 3, places=6)

    def test_revote_does_not_change_count(self):
        self._insert("alice", "bus-stops", 1)
        self._insert("bob", "bus-stops", 3)
        self.store.update_rating_sync(TABLE, 5, self.later, "alice", "bus-stops")

        aggregate = self.store.aggregate_rating_sync(TABLE, "bus-stops")

        self.assertEqual(aggregate.count, 2)
        self.assertEqual(float(aggregate.mean), 4.0)

    def test_tables_are_independent(self):
        self._insert("alice", "bus-stops", 5)

        self.assertIsNone(self.store.aggregate_rating_sync("rating_archive", "bus-stops"))


class TestSqliteLedgerStore(LedgerStoreContract, unittest.TestCase):
    """Test the SQLite ledger backend."""

    def create_store(self):
        self.test_db_path = Path(self.test_dir) / "nested" / "ratings.db"
        return SqliteLedgerStore(database_path=str(self.test_db_path))

    def test_database_file_is_created(self):
        self.store.connect_sync()

        self.assertTrue(self.test_db_path.exists())

    def test_rows_survive_a_new_store(self):
        self._insert("alice", "bus-stops", 4)
        self.store.close_sync()

        reopened = SqliteLedgerStore(database_path=str(self.test_db_path))
        record = reopened.get_rating_sync(TABLE, "alice", "bus-stops")

        self.assertEqual(record.score, 4)
        self.assertEqual(record.created, self.created)

    def test_out_of_range_score_is_rejected(self):
        with self.assertRaises(LedgerError):
            self._insert("alice", "bus-stops", 7)

    def test_invalid_table_name(self):
        with self.assertRaises(LedgerError) as cm:
            self.store.aggregate_rating_sync("rating; DROP TABLE rating", "bus-stops")

        self.assertEqual(cm.exception.context["dataset_id"], "bus-stops")

    def test_unwritable_location(self):
        blocker = Path(self.test_dir) / "blocker"
        blocker.write_text("not a directory")
        store = SqliteLedgerStore(database_path=str(blocker / "ratings.db"))

        self.assertFalse(store.test_connection_sync())
        with self.assertRaises(LedgerError):
            store.connect_sync()


class TestMemoryLedgerStore(LedgerStoreContract, unittest.TestCase):
    """Test the in-process ledger backend."""

    def create_store(self):
        return MemoryLedgerStore()

    def test_count_rows(self):
        self._insert("alice", "bus-stops", 4)
        self._insert("bob", "bus-stops", 4)
        self.store.update_rating_sync(TABLE, 1, self.later, "alice", "bus-stops")

        self.assertEqual(self.store.count_rows(TABLE), 2)
        self.assertEqual(self.store.count_rows("rating_archive"), 0)


class SlowMemoryLedgerStore(MemoryLedgerStore):
    """Memory ledger whose aggregate query takes a while and can be made to fail."""

    def __init__(self, delay=0.2, error=None):
        super().__init__()
        self.delay = delay
        self.error = error

    async def aggregate_rating(self, table, dataset_id):
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return await super().aggregate_rating(table, dataset_id)


class TestSyncWrappers(unittest.TestCase):
    """Test the synchronous wrappers used by the rating engine."""

    def test_slow_call_completes(self):
        store = SlowMemoryLedgerStore()
        now = datetime(2014, 6, 1, tzinfo=timezone.utc)
        store.insert_rating_sync(TABLE, "alice", "bus-stops", 3, now, now)

        aggregate = store.aggregate_rating_sync(TABLE, "bus-stops")

        self.assertEqual(aggregate.count, 1)

    def test_backend_error_is_raised_unchanged(self):
        error = LedgerError("database is locked", {"table": TABLE, "dataset_id": "bus-stops"})
        store = SlowMemoryLedgerStore(error=error)

        with self.assertRaises(LedgerError) as cm:
            store.aggregate_rating_sync(TABLE, "bus-stops")

        self.assertIs(cm.exception, error)

    def test_usable_inside_running_event_loop(self):
        store = SlowMemoryLedgerStore(delay=0)

        async def call_from_coroutine():
            return store.aggregate_rating_sync(TABLE, "bus-stops")

        self.assertIsNone(asyncio.run(call_from_coroutine()))


class TestLedgerStoreFactory(unittest.TestCase):
    """Test ledger store creation from configuration."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        ConfigManager._instance = None

    def tearDown(self):
        ConfigManager._instance = None
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write_config(self, text):
        config_dir = Path(self.test_dir) / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(text)
        with patch.dict(os.environ, {}, clear=True):
            return ConfigManager(config_dir)

    def test_available_backends(self):
        backends = list_available_backends()

        self.assertIn("sqlite", backends)
        self.assertIn("memory", backends)
        self.assertTrue(is_backend_available("memory"))
        self.assertFalse(is_backend_available("janusgraph"))

    def test_explicit_backend(self):
        store = create_ledger_store("sqlite", {"database_path": str(Path(self.test_dir) / "x.db")})

        self.assertIsInstance(store, SqliteLedgerStore)
        self.assertEqual(store.database_path, Path(self.test_dir) / "x.db")

    def test_factory_with_configuration(self):
        db_path = Path(self.test_dir) / "configured.db"
        config = self._write_config(
            "ledger:\n"
            "  backend: sqlite\n"
            "  rating_table: dataset_rating\n"
            "  sqlite:\n"
            f"    database_path: {db_path}\n"
        )

        store = create_ledger_store(config=config)

        self.assertIsInstance(store, SqliteLedgerStore)
        self.assertEqual(store.database_path, db_path)

    def test_memory_backend_from_configuration(self):
        config = self._write_config("ledger:\n  backend: memory\n")

        self.assertIsInstance(create_ledger_store(config=config), MemoryLedgerStore)

    def test_invalid_backend_type(self):
        with self.assertRaises(ValueError):
            create_ledger_store(backend_type="invalid_backend")


if __name__ == "__main__":
    unittest.main()
