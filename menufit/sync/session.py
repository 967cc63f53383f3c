# -*- coding: utf-8 -*-
"""Sync session: one authenticated user's cache + client, built on login, torn down on logout.

Ordering rules:
- At most one sync or local write runs per namespace at a time; a sync request
  that arrives while one is running joins it instead of starting another.
- A merge is written to the cache only after the server snapshot has been
  fetched and the merge fully computed. A failed fetch leaves the cache as it was.
- Network and cache failures become status signals; they are not raised.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel

from ..config import settings
from .cache import LocalCache, namespace_for
from .client import SyncApiClient
from .domains import LocalDomain, SyncDomain
from .errors import CacheError, SessionClosedError, SyncError
from .models import AuthResult, TrackedEntry
from .reconcile import apply_local_mutation, drop_local_entry, merge_entries, project_to_wire

logger = logging.getLogger(__name__)

Snapshot = Dict[str, TrackedEntry]


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


def _plain(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    return payload


class SyncSession:
    def __init__(
        self,
        auth: AuthResult,
        cache: LocalCache,
        client: SyncApiClient,
        *,
        synced_reset_sec: Optional[float] = None,
        error_reset_sec: Optional[float] = None,
        on_status: Optional[Callable[[SyncStatus], None]] = None,
    ) -> None:
        self.user_id = auth.user_id
        self.email = auth.email
        self.token = auth.token
        self.cache = cache
        self.client = client
        self.status = SyncStatus.IDLE
        self.last_error: Optional[str] = None
        self.cache_warning: Optional[str] = None
        self.closed = False

        self._synced_reset_sec = settings.synced_reset_sec if synced_reset_sec is None else synced_reset_sec
        self._error_reset_sec = settings.error_reset_sec if error_reset_sec is None else error_reset_sec
        self._on_status = on_status
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._snapshots: Dict[SyncDomain, Snapshot] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._inflight: Dict[str, "asyncio.Future[Snapshot]"] = {}

    @classmethod
    async def login(
        cls,
        client: SyncApiClient,
        cache: LocalCache,
        email: str,
        password: str,
        *,
        previous_user_id: Optional[str] = None,
        create_account: bool = False,
        **kwargs: Any,
    ) -> "SyncSession":
        """Authenticate and open a session.

        When the device was last used by a different account, that account's
        cached data is wiped first so nothing leaks across users.
        """
        authenticate = client.signup if create_account else client.login
        auth = await authenticate(email, password)
        if previous_user_id is not None and str(previous_user_id) != auth.user_id:
            logger.info("User switch on this device; clearing cache for %s", previous_user_id)
            try:
                cache.clear_user(previous_user_id)
            except CacheError as exc:
                logger.warning("Could not clear cache for previous user %s: %s", previous_user_id, exc)
        return cls(auth, cache, client, **kwargs)

    # ---- status ----

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _notify(self) -> None:
        if self._on_status is not None:
            self._on_status(self.status)

    def _set_status(self, status: SyncStatus, error: Optional[str] = None) -> None:
        self._cancel_reset()
        self.status = status
        if error is not None:
            self.last_error = error
        self._notify()
        delay = {SyncStatus.SYNCED: self._synced_reset_sec, SyncStatus.ERROR: self._error_reset_sec}.get(status)
        if delay is not None:
            self._reset_handle = asyncio.get_running_loop().call_later(delay, self._reset_status, status)

    def _reset_status(self, expected: SyncStatus) -> None:
        self._reset_handle = None
        if self.status is expected:
            self.status = SyncStatus.IDLE
            self._notify()

    # ---- snapshots ----

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError("session has been logged out")

    def namespace(self, domain: Union[SyncDomain, LocalDomain]) -> str:
        return namespace_for(self.user_id, domain)

    def _lock(self, namespace: str) -> asyncio.Lock:
        return self._locks.setdefault(namespace, asyncio.Lock())

    def _current(self, domain: SyncDomain) -> Snapshot:
        snapshot = self._snapshots.get(domain)
        if snapshot is None:
            try:
                snapshot = self.cache.load(self.namespace(domain))
            except CacheError as exc:
                logger.warning("Cache read failed for %s: %s", domain.value, exc)
                self.cache_warning = str(exc)
                snapshot = {}
            self._snapshots[domain] = snapshot
        return snapshot

    def _commit(self, domain: SyncDomain, snapshot: Snapshot) -> None:
        # The in-memory snapshot always advances; a failed cache write only raises a warning.
        self._snapshots[domain] = snapshot
        try:
            self.cache.save(self.namespace(domain), snapshot)
        except CacheError as exc:
            logger.warning("Cache write failed for %s: %s", domain.value, exc)
            self.cache_warning = str(exc)

    def entries(self, domain: Union[SyncDomain, str]) -> Snapshot:
        self._ensure_open()
        return dict(self._current(SyncDomain(domain)))

    def local_state(self, domain: LocalDomain, default: Any = None) -> Any:
        self._ensure_open()
        try:
            return self.cache.load_json(self.namespace(domain), default=default)
        except CacheError as exc:
            logger.warning("Cache read failed for %s: %s", domain.value, exc)
            self.cache_warning = str(exc)
            return default

    def store_local_state(self, domain: LocalDomain, value: Any) -> None:
        self._ensure_open()
        try:
            self.cache.save_json(self.namespace(domain), value)
        except CacheError as exc:
            logger.warning("Cache write failed for %s: %s", domain.value, exc)
            self.cache_warning = str(exc)

    # ---- network ----

    async def _push(self, domain: SyncDomain, snapshot: Mapping[str, TrackedEntry]) -> bool:
        self._set_status(SyncStatus.SYNCING)
        try:
            await self.client.push(domain, project_to_wire(snapshot), self.token)
        except SyncError as exc:
            logger.error("Upload of %s failed: %s", domain.value, exc)
            self._set_status(SyncStatus.ERROR, str(exc))
            return False
        self._set_status(SyncStatus.SYNCED)
        return True

    async def _sync_once(self, domain: SyncDomain) -> Snapshot:
        async with self._lock(self.namespace(domain)):
            local = self._current(domain)
            self._set_status(SyncStatus.SYNCING)
            try:
                server_entries = await self.client.fetch(domain, self.token)
            except SyncError as exc:
                logger.error("Download of %s failed: %s", domain.value, exc)
                self._set_status(SyncStatus.ERROR, str(exc))
                return local

            # Heuristic: an empty cache means a fresh login on this device, so the server copy
            # (possibly edited by an admin) must not be shadowed by local state.
            fresh = not local
            merged = merge_entries(local, server_entries, prioritize_server=fresh)
            self._commit(domain, merged)
            logger.info(
                "Merged %s: %d local + %d server -> %d%s",
                domain.value,
                len(local),
                len(server_entries),
                len(merged),
                " (server priority)" if fresh else "",
            )
            await self._push(domain, merged)
            return merged

    async def sync_from_server(self, domain: Union[SyncDomain, str]) -> Snapshot:
        """Pull, merge, persist and re-upload one domain; returns the resulting snapshot."""
        self._ensure_open()
        domain = SyncDomain(domain)
        namespace = self.namespace(domain)
        running = self._inflight.get(namespace)
        if running is None or running.done():
            running = asyncio.ensure_future(self._sync_once(domain))
            self._inflight[namespace] = running
            running.add_done_callback(lambda fut, ns=namespace: self._forget(ns, fut))
        return dict(await asyncio.shield(running))

    def _forget(self, namespace: str, fut: "asyncio.Future[Snapshot]") -> None:
        if self._inflight.get(namespace) is fut:
            del self._inflight[namespace]

    async def sync_all(self) -> Dict[SyncDomain, Snapshot]:
        return {domain: await self.sync_from_server(domain) for domain in SyncDomain}

    async def record(self, domain: Union[SyncDomain, str], key: str, payload: Any) -> Snapshot:
        """Write one entry locally (stamped now), then upload the whole collection."""
        self._ensure_open()
        domain = SyncDomain(domain)
        async with self._lock(self.namespace(domain)):
            updated = apply_local_mutation(self._current(domain), key, _plain(payload))
            self._commit(domain, updated)
            await self._push(domain, updated)
            return dict(updated)

    async def remove(self, domain: Union[SyncDomain, str], key: str) -> Snapshot:
        """Drop a favorite. Day collections are upserted server-side, so days are emptied, not removed."""
        self._ensure_open()
        domain = SyncDomain(domain)
        if domain is not SyncDomain.FAVORITES:
            raise ValueError(f"{domain.value} days are cleared by recording an empty payload")
        async with self._lock(self.namespace(domain)):
            current = self._current(domain)
            if key not in current:
                return dict(current)
            updated = drop_local_entry(current, key)
            self._commit(domain, updated)
            await self._push(domain, updated)
            return dict(updated)

    async def logout(self) -> None:
        """Cancel in-flight syncs and wipe this user's cached data. The client stays open."""
        if self.closed:
            return
        self.closed = True
        self._cancel_reset()
        pending = [fut for fut in self._inflight.values() if not fut.done()]
        for fut in pending:
            fut.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()
        try:
            self.cache.clear_user(self.user_id)
        except CacheError as exc:
            logger.warning("Could not clear cache for %s on logout: %s", self.user_id, exc)
        self._snapshots.clear()
        self.status = SyncStatus.IDLE
        logger.info("Logged out %s", self.user_id)
