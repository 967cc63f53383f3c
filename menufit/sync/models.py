# -*- coding: utf-8 -*-
"""Sync core data shapes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class TrackedEntry:
    """One payload in a synced collection plus the time it was last written."""

    payload: Any
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.payload, "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, raw: Any) -> "TrackedEntry":
        # Older caches stored the bare payload without a data/updatedAt wrapper.
        if isinstance(raw, Mapping) and "data" in raw:
            updated_at = raw.get("updatedAt")
            return cls(payload=raw.get("data"), updated_at=updated_at if isinstance(updated_at, str) else None)
        return cls(payload=raw, updated_at=None)


@dataclass(frozen=True)
class ServerEntry:
    """Domain-neutral form of one uploaded/downloaded element."""

    key: str
    payload: Any
    updated_at: Optional[str] = None

    def to_tracked(self) -> TrackedEntry:
        return TrackedEntry(payload=self.payload, updated_at=self.updated_at)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user_id: str
    email: str
