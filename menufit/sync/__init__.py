# -*- coding: utf-8 -*-
"""Offline-first client sync: Local Cache, reconciler and session."""

from .cache import LocalCache, MemoryCache, SqliteCache, namespace_for
from .client import SyncApiClient
from .domains import LocalDomain, SyncDomain
from .errors import AuthError, CacheError, SessionClosedError, SyncError, SyncTransportError
from .models import AuthResult, ServerEntry, TrackedEntry
from .reconcile import apply_local_mutation, drop_local_entry, merge_entries, project_to_wire
from .session import SyncSession, SyncStatus

__all__ = [
    "AuthError",
    "AuthResult",
    "CacheError",
    "LocalCache",
    "LocalDomain",
    "MemoryCache",
    "ServerEntry",
    "SessionClosedError",
    "SqliteCache",
    "SyncApiClient",
    "SyncDomain",
    "SyncError",
    "SyncSession",
    "SyncStatus",
    "SyncTransportError",
    "TrackedEntry",
    "apply_local_mutation",
    "drop_local_entry",
    "merge_entries",
    "namespace_for",
    "project_to_wire",
]
