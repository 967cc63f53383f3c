# -*- coding: utf-8 -*-
"""Local Cache: namespaced, synchronous storage of Tracked Entries.

A namespace is one user's slice of one domain. Saves overwrite the whole
namespace in one step, and a load right after a save sees it.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..app_db import db_conn
from .domains import LocalDomain, SyncDomain
from .errors import CacheError
from .models import TrackedEntry

logger = logging.getLogger(__name__)

_SEPARATOR = ":"


def namespace_for(user_id: Any, domain: Union[str, Enum]) -> str:
    name = domain.value if isinstance(domain, Enum) else str(domain)
    if _SEPARATOR in name:
        raise ValueError(f"domain name may not contain {_SEPARATOR!r}: {name}")
    return f"{name}{_SEPARATOR}{user_id}"


def user_namespaces(user_id: Any) -> List[str]:
    return [namespace_for(user_id, d) for d in (*SyncDomain, *LocalDomain)]


class LocalCache:
    """Entry-level API on top of a raw JSON store; subclasses provide the store."""

    def load_raw(self, namespace: str) -> Optional[str]:
        raise NotImplementedError

    def save_raw(self, namespace: str, value: str) -> None:
        raise NotImplementedError

    def clear(self, namespace: str) -> None:
        raise NotImplementedError

    def namespaces(self) -> List[str]:
        raise NotImplementedError

    def load_json(self, namespace: str, default: Any = None) -> Any:
        raw = self.load_raw(namespace)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt cache namespace %s", namespace)
            return default

    def save_json(self, namespace: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise CacheError(f"value for {namespace} is not JSON serializable: {exc}") from exc
        self.save_raw(namespace, raw)

    def load(self, namespace: str) -> Dict[str, TrackedEntry]:
        stored = self.load_json(namespace, default={})
        if not isinstance(stored, dict):
            logger.warning("Ignoring cache namespace %s: expected an object, got %s", namespace, type(stored).__name__)
            return {}
        return {key: TrackedEntry.from_dict(value) for key, value in stored.items()}

    def save(self, namespace: str, mapping: Mapping[str, TrackedEntry]) -> None:
        self.save_json(namespace, {key: entry.to_dict() for key, entry in mapping.items()})

    def clear_user(self, user_id: Any) -> None:
        for namespace in user_namespaces(user_id):
            self.clear(namespace)


class MemoryCache(LocalCache):
    """Process-local cache; values are kept serialized so callers never share references."""

    def __init__(self) -> None:
        self._store: Dict[str, str] = {}

    def load_raw(self, namespace: str) -> Optional[str]:
        return self._store.get(namespace)

    def save_raw(self, namespace: str, value: str) -> None:
        self._store[namespace] = value

    def clear(self, namespace: str) -> None:
        self._store.pop(namespace, None)

    def namespaces(self) -> List[str]:
        return sorted(self._store)


class SqliteCache(LocalCache):
    """Durable cache in a single SQLite file, one row per namespace."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            with db_conn(self.path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS cache_namespaces (
                        namespace TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        saved_at TEXT NOT NULL
                    );
                    """
                )
        except (sqlite3.Error, OSError) as exc:
            raise CacheError(f"cannot open cache at {self.path}: {exc}") from exc

    def load_raw(self, namespace: str) -> Optional[str]:
        try:
            with db_conn(self.path) as conn:
                row = conn.execute(
                    "SELECT value FROM cache_namespaces WHERE namespace = ?", (namespace,)
                ).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise CacheError(f"cannot read {namespace}: {exc}") from exc
        return row["value"] if row else None

    def save_raw(self, namespace: str, value: str) -> None:
        saved_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        try:
            with db_conn(self.path) as conn:
                conn.execute(
                    """
                    INSERT INTO cache_namespaces (namespace, value, saved_at) VALUES (?, ?, ?)
                    ON CONFLICT(namespace) DO UPDATE SET value = excluded.value, saved_at = excluded.saved_at
                    """,
                    (namespace, value, saved_at),
                )
        except (sqlite3.Error, OSError) as exc:
            raise CacheError(f"cannot write {namespace}: {exc}") from exc

    def clear(self, namespace: str) -> None:
        try:
            with db_conn(self.path) as conn:
                conn.execute("DELETE FROM cache_namespaces WHERE namespace = ?", (namespace,))
        except (sqlite3.Error, OSError) as exc:
            raise CacheError(f"cannot clear {namespace}: {exc}") from exc

    def namespaces(self) -> List[str]:
        try:
            with db_conn(self.path) as conn:
                rows = conn.execute("SELECT namespace FROM cache_namespaces ORDER BY namespace").fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise CacheError(f"cannot list namespaces: {exc}") from exc
        return [row["namespace"] for row in rows]
