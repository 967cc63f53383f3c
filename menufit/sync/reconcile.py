# -*- coding: utf-8 -*-
"""Merge local and server snapshots of a synced collection.

Everything here is pure: no cache or network access, and inputs are never
modified. Malformed server records are skipped, never raised, so a single bad
row can't abort a sync.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import ServerEntry, TrackedEntry
from .timestamps import next_stamp, parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)


def _coerce_server_entry(item: Any) -> Optional[ServerEntry]:
    if isinstance(item, ServerEntry):
        entry = item
    elif isinstance(item, Mapping):
        key = item.get("key")
        payload = item["payload"] if "payload" in item else item.get("data")
        updated_at = item["updated_at"] if "updated_at" in item else item.get("updatedAt")
        if not isinstance(key, str) or not key:
            return None
        entry = ServerEntry(key=key, payload=payload, updated_at=updated_at if isinstance(updated_at, str) else None)
    else:
        return None

    if isinstance(entry.payload, str):
        # Payloads travel as JSON objects; a string here is a double-encoded row.
        try:
            entry = ServerEntry(key=entry.key, payload=json.loads(entry.payload), updated_at=entry.updated_at)
        except json.JSONDecodeError:
            return None
    return entry


def _collapse(server_entries: Iterable[Any]) -> Dict[str, ServerEntry]:
    """Index server entries by key; on duplicate keys the newer one wins, ties keep the first."""
    out: Dict[str, ServerEntry] = {}
    skipped = 0
    for item in server_entries or ():
        entry = _coerce_server_entry(item)
        if entry is None:
            skipped += 1
            continue
        current = out.get(entry.key)
        if current is None or parse_timestamp(entry.updated_at) > parse_timestamp(current.updated_at):
            out[entry.key] = entry
    if skipped:
        logger.warning("Skipped %d malformed server entries", skipped)
    return out


def _sorted(mapping: Dict[str, TrackedEntry]) -> Dict[str, TrackedEntry]:
    return {key: mapping[key] for key in sorted(mapping)}


def merge_entries(
    local: Mapping[str, TrackedEntry],
    server_entries: Iterable[Any],
    prioritize_server: bool = False,
) -> Dict[str, TrackedEntry]:
    """Combine a local snapshot with the server's list of entries.

    With `prioritize_server` the result is exactly the server entries keyed by
    key, whatever the local side holds. Otherwise it is last-write-wins: a
    server entry replaces the local one only when its timestamp is strictly
    newer, and keys the server doesn't mention are kept.
    """
    incoming = _collapse(server_entries)

    if prioritize_server:
        return _sorted({key: entry.to_tracked() for key, entry in incoming.items()})

    merged: Dict[str, TrackedEntry] = dict(local)
    for key, entry in incoming.items():
        current = merged.get(key)
        if current is None or parse_timestamp(entry.updated_at) > parse_timestamp(current.updated_at):
            merged[key] = entry.to_tracked()
    return _sorted(merged)


def project_to_wire(mapping: Mapping[str, TrackedEntry]) -> List[ServerEntry]:
    """Flatten a mapping into the upload list, one element per key."""
    out: List[ServerEntry] = []
    for key in sorted(mapping):
        entry = mapping[key]
        out.append(ServerEntry(key=key, payload=entry.payload, updated_at=entry.updated_at or utc_now_iso()))
    return out


def apply_local_mutation(
    mapping: Mapping[str, TrackedEntry],
    key: str,
    payload: Any,
    now: Optional[datetime] = None,
) -> Dict[str, TrackedEntry]:
    """Return a copy of `mapping` with `key` set to `payload`, stamped newer than anything in it."""
    stamp = next_stamp((entry.updated_at for entry in mapping.values()), now=now)
    updated = dict(mapping)
    updated[key] = TrackedEntry(payload=copy.deepcopy(payload), updated_at=stamp)
    return _sorted(updated)


def drop_local_entry(mapping: Mapping[str, TrackedEntry], key: str) -> Dict[str, TrackedEntry]:
    return _sorted({k: v for k, v in mapping.items() if k != key})
