from __future__ import annotations

import datetime as dt
import json
import tempfile
import unittest
from pathlib import Path

from doug.api import load_store, save_store
from doug.clock import FixedClock
from doug.errors import CorruptStore, StoreIOError
from doug.model import Frame
from doug.storage import FrameFile

UTC = dt.timezone.utc
T = dt.datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
H = dt.timedelta(hours=1)


class TestStorageContract(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.folder = Path(self._tmp.name)
        self.ff = FrameFile.in_folder(self.folder)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_and_empty_files_are_empty_stores(self) -> None:
        self.assertEqual(self.ff.load(), ([], 1))
        self.ff.path.write_text("  \n", encoding="utf-8")
        self.assertEqual(self.ff.load(), ([], 1))

    def test_save_then_load_keeps_frames_and_next_id(self) -> None:
        frames = [
            Frame(id=1, project="a", start=T, end=T + H, tags=("x",)),
            Frame(id=4, project="b", start=T + 2 * H, end=None),
        ]
        self.ff.save(frames, 7)
        loaded, next_id = self.ff.load()
        self.assertEqual(loaded, frames)
        self.assertEqual(next_id, 7)

        doc = json.loads(self.ff.path.read_text(encoding="utf-8"))
        self.assertEqual(doc["schema_version"], 1)
        self.assertEqual(doc["frames"][0]["start"], "2024-03-01T09:00:00Z")
        self.assertIsNone(doc["frames"][1]["end"])

    def test_save_keeps_previous_file_as_backup(self) -> None:
        first = [Frame(id=1, project="a", start=T, end=T + H)]
        self.ff.save(first, 2)
        self.assertFalse(self.ff.backup_path.exists())
        self.ff.save(first + [Frame(id=2, project="b", start=T + H, end=T + 2 * H)], 3)

        self.assertEqual(self.ff.backup_path.name, "periods.json-backup")
        backup = json.loads(self.ff.backup_path.read_text(encoding="utf-8"))
        self.assertEqual(len(backup["frames"]), 1)
        self.assertEqual([p.name for p in self.folder.glob("*.tmp")], [])

    def test_legacy_periods_file_loads(self) -> None:
        legacy = [
            {"project": "writing", "start_time": "2024-03-01T09:00:00.123456789Z", "end_time": "2024-03-01T10:00:00Z"},
            {"project": "reading", "start_time": "2024-03-01T11:00:00Z", "end_time": None},
        ]
        self.ff.path.write_text(json.dumps(legacy), encoding="utf-8")
        frames, next_id = self.ff.load()
        self.assertEqual([(f.id, f.project) for f in frames], [(1, "writing"), (2, "reading")])
        self.assertEqual(frames[0].start, T.replace(microsecond=123456))
        self.assertIsNone(frames[1].end)
        self.assertEqual(next_id, 3)

    def test_unreadable_json_is_corrupt(self) -> None:
        self.ff.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(CorruptStore):
            self.ff.load()

    def test_undecodable_bytes_are_corrupt(self) -> None:
        self.ff.path.write_bytes(
            b'[{"project": "\xff\xfe", "start_time": "2024-03-01T09:00:00Z", "end_time": null}]'
        )
        with self.assertRaises(CorruptStore):
            self.ff.load()
        with self.assertRaises(CorruptStore):
            load_store(self.ff.path)

    def test_bad_records_are_corrupt(self) -> None:
        bad_docs = [
            "42",
            json.dumps({"schema_version": 1, "next_id": 2, "frames": [{"id": 1, "project": "", "tags": [], "start": "2024-03-01T09:00:00Z", "end": None}]}),
            json.dumps({"schema_version": 1, "next_id": 2, "frames": [{"id": 1, "project": "a", "tags": [], "start": "yesterday-ish", "end": None}]}),
            json.dumps({"schema_version": 99, "next_id": 1, "frames": []}),
        ]
        for text in bad_docs:
            self.ff.path.write_text(text, encoding="utf-8")
            with self.assertRaises(CorruptStore, msg=text):
                self.ff.load()

    def test_store_with_two_running_frames_is_corrupt(self) -> None:
        doc = {
            "schema_version": 1,
            "next_id": 3,
            "frames": [
                {"id": 1, "project": "a", "tags": [], "start": "2024-03-01T09:00:00Z", "end": None},
                {"id": 2, "project": "b", "tags": [], "start": "2024-03-01T10:00:00Z", "end": None},
            ],
        }
        self.ff.path.write_text(json.dumps(doc), encoding="utf-8")
        with self.assertRaises(CorruptStore):
            load_store(self.ff.path)

    def test_lock_is_exclusive_and_released(self) -> None:
        with self.ff.lock():
            self.assertTrue(self.ff.lock_path.exists())
            with self.assertRaises(StoreIOError):
                with self.ff.lock():
                    pass
        self.assertFalse(self.ff.lock_path.exists())

    def test_api_round_trip(self) -> None:
        clock = FixedClock(T)
        store = load_store(self.ff.path, clock=clock)
        store.start("writing")
        clock.advance(H)
        store.stop()
        save_store(store, self.ff.path)

        again = load_store(self.ff.path, clock=clock)
        self.assertEqual(again.frames, store.frames)
        self.assertEqual(again.next_id, store.next_id)


if __name__ == "__main__":
    unittest.main(verbosity=2)
