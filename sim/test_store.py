#!/usr/bin/env python3
"""
Tests for meta-record persistence.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from sim.progression import MetaProgression, Upgrades
from sim.store import MemoryStore, MetaStore


class MetaStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.path = self.root / "save" / "meta.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_defaults(self) -> None:
        self.assertEqual(MetaStore(self.path).load(), MetaProgression())

    def test_save_then_load(self) -> None:
        store = MetaStore(self.path)
        meta = MetaProgression(credits=42, upgrades=Upgrades(accel=1, max_speed=3))
        self.assertTrue(store.save(meta))
        self.assertEqual(store.load(), meta)

    def test_on_disk_record_format(self) -> None:
        MetaStore(self.path).save(MetaProgression(credits=7, upgrades=Upgrades(max_speed=2)))
        record = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(
            record,
            {"credits": 7, "upgrades": {"accel": 0, "brake": 0, "maxSpeed": 2, "lateral": 0}},
        )

    def test_partial_record_fills_defaults(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text('{"credits": 5}', encoding="utf-8")
        self.assertEqual(MetaStore(self.path).load(), MetaProgression(credits=5))

    def test_malformed_records_load_defaults(self) -> None:
        self.path.parent.mkdir(parents=True)
        for text in ("{not json", '{"credits": -4}', '{"upgrades": {"accel": "x"}}', "[]"):
            self.path.write_text(text, encoding="utf-8")
            with self.assertLogs("store", level="INFO"):
                self.assertEqual(MetaStore(self.path).load(), MetaProgression())

    def test_undecodable_bytes_load_defaults(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(b'{"credits": 5, "upgrades": {}}\xff\xfe')
        with self.assertLogs("store", level="INFO"):
            self.assertEqual(MetaStore(self.path).load(), MetaProgression())

    def test_write_failure_is_logged_not_raised(self) -> None:
        blocker = self.root / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = MetaStore(blocker / "meta.json")
        with self.assertLogs("store", level="WARNING"):
            self.assertFalse(store.save(MetaProgression(credits=1)))

    def test_save_leaves_no_temp_files(self) -> None:
        store = MetaStore(self.path)
        store.save(MetaProgression(credits=1))
        store.save(MetaProgression(credits=2))
        self.assertEqual([p.name for p in self.path.parent.iterdir()], ["meta.json"])


class MemoryStoreTests(unittest.TestCase):
    def test_round_trip_and_isolation(self) -> None:
        store = MemoryStore()
        meta = store.load()
        meta.credits = 30
        self.assertEqual(store.load().credits, 0)
        self.assertTrue(store.save(meta))
        self.assertEqual(store.saves, 1)
        self.assertEqual(store.load().credits, 30)


if __name__ == "__main__":
    unittest.main()
