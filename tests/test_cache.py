# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from menufit.sync.cache import LocalCache, MemoryCache, SqliteCache, namespace_for, user_namespaces
from menufit.sync.domains import LocalDomain, SyncDomain
from menufit.sync.errors import CacheError
from menufit.sync.models import TrackedEntry


class _CacheContract:
    """Behaviour every LocalCache implementation must share."""

    def make_cache(self) -> LocalCache:
        raise NotImplementedError

    def setUp(self) -> None:
        self.cache = self.make_cache()

    def test_absent_namespace_loads_empty(self) -> None:
        self.assertEqual(self.cache.load(namespace_for("u1", SyncDomain.MENU)), {})
        self.assertIsNone(self.cache.load_json(namespace_for("u1", LocalDomain.RECENT_FOODS)))

    def test_save_then_load(self) -> None:
        ns = namespace_for("u1", SyncDomain.WORKOUTS)
        mapping = {
            "2024-06-01": TrackedEntry({"cardio": True, "notes": "5k"}, "2024-06-01T07:00:00.000Z"),
            "2024-06-02": TrackedEntry({}, None),
        }
        self.cache.save(ns, mapping)
        self.assertEqual(self.cache.load(ns), mapping)

    def test_save_overwrites_whole_namespace(self) -> None:
        ns = namespace_for("u1", SyncDomain.MENU)
        self.cache.save(ns, {"a": TrackedEntry(1, None), "b": TrackedEntry(2, None)})
        self.cache.save(ns, {"c": TrackedEntry(3, None)})
        self.assertEqual(list(self.cache.load(ns)), ["c"])

    def test_users_are_isolated(self) -> None:
        self.cache.save(namespace_for("u1", SyncDomain.MENU), {"a": TrackedEntry(1, None)})
        self.cache.save(namespace_for("u2", SyncDomain.MENU), {"b": TrackedEntry(2, None)})

        self.cache.clear_user("u1")

        self.assertEqual(self.cache.load(namespace_for("u1", SyncDomain.MENU)), {})
        self.assertEqual(list(self.cache.load(namespace_for("u2", SyncDomain.MENU))), ["b"])

    def test_clear_user_covers_local_only_namespaces(self) -> None:
        self.cache.save_json(namespace_for("u1", LocalDomain.EXERCISE_WEIGHTS), {"squat": 80})
        self.cache.save_json(namespace_for("u1", LocalDomain.RECENT_FOODS), {"protein": []})
        self.cache.clear_user("u1")
        self.assertEqual(self.cache.namespaces(), [])

    def test_corrupt_namespace_reads_as_absent(self) -> None:
        ns = namespace_for("u1", SyncDomain.FAVORITES)
        self.cache.save_raw(ns, "{not json")
        with self.assertLogs("menufit.sync.cache", level="WARNING"):
            self.assertEqual(self.cache.load(ns), {})

    def test_non_object_namespace_reads_as_absent(self) -> None:
        ns = namespace_for("u1", SyncDomain.MENU)
        self.cache.save_json(ns, [1, 2, 3])
        self.assertEqual(self.cache.load(ns), {})

    def test_legacy_bare_payload_is_wrapped(self) -> None:
        ns = namespace_for("u1", SyncDomain.MENU)
        self.cache.save_json(ns, {"2024-06-01": {"protein": ["egg"]}})
        self.assertEqual(self.cache.load(ns), {"2024-06-01": TrackedEntry({"protein": ["egg"]}, None)})

    def test_unserializable_value_raises_cache_error(self) -> None:
        with self.assertRaises(CacheError):
            self.cache.save_json(namespace_for("u1", LocalDomain.EXERCISE_SETS), {"when": object()})


class TestMemoryCache(_CacheContract, unittest.TestCase):
    def make_cache(self) -> LocalCache:
        return MemoryCache()

    def test_loaded_values_are_copies(self) -> None:
        ns = namespace_for("u1", SyncDomain.MENU)
        self.cache.save(ns, {"a": TrackedEntry({"protein": []}, None)})
        self.cache.load(ns)["a"].payload["protein"].append("egg")
        self.assertEqual(self.cache.load(ns)["a"].payload, {"protein": []})


class TestSqliteCache(_CacheContract, unittest.TestCase):
    def make_cache(self) -> LocalCache:
        self._tmp = Path(tempfile.mkdtemp(prefix="menufit-cache-"))
        self.addCleanup(shutil.rmtree, self._tmp, True)
        return SqliteCache(self._tmp / "cache.db")

    def test_survives_reopen(self) -> None:
        ns = namespace_for("u1", SyncDomain.MENU)
        self.cache.save(ns, {"a": TrackedEntry(1, "2024-01-01T00:00:00Z")})
        reopened = SqliteCache(self._tmp / "cache.db")
        self.assertEqual(reopened.load(ns), {"a": TrackedEntry(1, "2024-01-01T00:00:00Z")})

    def test_unwritable_location_raises_cache_error(self) -> None:
        blocker = self._tmp / "file"
        blocker.write_text("x")
        with self.assertRaises(CacheError):
            SqliteCache(blocker / "cache.db")


class TestNamespaces(unittest.TestCase):
    def test_namespaces_differ_per_user_and_domain(self) -> None:
        names = set(user_namespaces("1")) | set(user_namespaces("12"))
        self.assertEqual(len(names), 2 * (len(SyncDomain) + len(LocalDomain)))

    def test_separator_rejected_in_domain(self) -> None:
        with self.assertRaises(ValueError):
            namespace_for("u1", "menu:extra")


if __name__ == "__main__":
    unittest.main()
