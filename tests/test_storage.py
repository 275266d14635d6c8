"""Tests for the storage backends and the persisted history list."""

import json
import unittest
from unittest.mock import MagicMock

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from manganime.models import StorageEntry
from manganime.models.storage_entry import utc_now
from manganime.services.context import ReadingContext
from manganime.services.history_store import HistoryStore
from manganime.services.progress_services import ReadingHistory
from manganime.services.storage import MemoryStorage, NullStorage, SqlStorage
from tests.fakes import make_record


class TestSqlStorage(unittest.TestCase):

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self.engine, tables=[StorageEntry.__table__])
        self.storage = SqlStorage(lambda: Session(self.engine))

    def tearDown(self):
        self.engine.dispose()

    def test_missing_key(self):
        self.assertIsNone(self.storage.get("nope"))

    def test_set_get_overwrite_remove(self):
        self.storage.set("k", "one")
        self.assertEqual(self.storage.get("k"), "one")
        self.storage.set("k", "two")
        self.assertEqual(self.storage.get("k"), "two")
        self.storage.remove("k")
        self.assertIsNone(self.storage.get("k"))

    def test_remove_missing_key_is_noop(self):
        self.storage.remove("nope")

    def test_history_round_trip_preserves_order(self):
        store = HistoryStore(self.storage)
        records = [make_record("b", last_read=2), make_record("a", last_read=1)]
        store.save(records)
        self.assertEqual(store.load(), records)

    def test_rows_carry_aware_timestamps(self):
        self.storage.set("k", "one")
        self.storage.set("k", "two")
        self.assertIsNotNone(utc_now().tzinfo)
        self.assertIsNotNone(StorageEntry(key="x", value="y").updated_at.tzinfo)

    def test_progress_update_persists_through_sql(self):
        history = ReadingHistory(ReadingContext(storage=self.storage))
        history.context.queue = MagicMock()
        history.context.queue.submit.side_effect = lambda name, coro: coro.close()

        stored = history.update(make_record("m1", chapter_number=1, current_page=2))

        self.assertIsNotNone(stored)
        self.assertEqual([r.position for r in history.get_history()], [(1, 2)])
        history.context.queue.submit.assert_called_once()


class TestHistoryStore(unittest.TestCase):

    def setUp(self):
        self.storage = MemoryStorage()
        self.store = HistoryStore(self.storage, key="history")

    def test_absent_is_empty(self):
        self.assertEqual(self.store.load(), [])

    def test_invalid_json_is_empty(self):
        self.storage.set("history", "{not json")
        with self.assertLogs("manganime.services.history_store", level="WARNING"):
            self.assertEqual(self.store.load(), [])

    def test_non_list_is_empty(self):
        self.storage.set("history", json.dumps({"manga_id": "x"}))
        with self.assertLogs("manganime.services.history_store", level="WARNING"):
            self.assertEqual(self.store.load(), [])

    def test_malformed_entry_is_empty(self):
        self.storage.set("history", json.dumps([{"manga_id": "x"}]))
        with self.assertLogs("manganime.services.history_store", level="WARNING"):
            self.assertEqual(self.store.load(), [])

    def test_non_object_entry_is_corrupt(self):
        self.storage.set("history", json.dumps([42]))
        with self.assertLogs("manganime.services.history_store", level="WARNING"):
            self.assertEqual(self.store.load(), [])

    def test_null_ids_are_corrupt(self):
        entry = make_record("a").to_dict()
        for name in ("manga_id", "chapter_id"):
            for bad in (None, ""):
                with self.subTest(name=name, value=bad):
                    self.storage.set("history", json.dumps([dict(entry, **{name: bad})]))
                    with self.assertLogs("manganime.services.history_store", level="WARNING"):
                        self.assertEqual(self.store.load(), [])

    def test_save_overwrites_whole_list(self):
        self.store.save([make_record("a"), make_record("b")])
        self.store.save([make_record("c")])
        self.assertEqual([r.manga_id for r in self.store.load()], ["c"])

    def test_clear(self):
        self.store.save([make_record("a")])
        self.store.clear()
        self.assertIsNone(self.storage.get("history"))

    def test_null_storage_is_neutral(self):
        store = HistoryStore(NullStorage())
        store.save([make_record("a")])
        self.assertEqual(store.load(), [])
        store.clear()


if __name__ == "__main__":
    unittest.main()
