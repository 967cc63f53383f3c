# -*- coding: utf-8 -*-
"""Per-domain wire codecs for the /sync endpoints."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .models import ServerEntry

logger = logging.getLogger(__name__)

# Early clients stored the menu template under this day key; it never holds consumed food.
LEGACY_TEMPLATE_KEY = "template"


class SyncDomain(str, Enum):
    MENU = "menu"
    WORKOUTS = "workouts"
    FAVORITES = "favorites"

    @property
    def path(self) -> str:
        return f"/sync/{self.value}"

    @property
    def envelope(self) -> str:
        return "favorites" if self is SyncDomain.FAVORITES else "entries"


class LocalDomain(str, Enum):
    """Namespaces that live only in the Local Cache and are never uploaded."""

    EXERCISE_WEIGHTS = "exercise_weights"
    EXERCISE_SETS = "exercise_sets"
    RECENT_FOODS = "recent_foods"
    ALLOWANCES = "allowances"
    MENU_TEMPLATE = "menu_template"


def favorite_key(category: str, item_id: Any) -> str:
    return f"{category}-{item_id}"


def split_favorite_key(key: str) -> Tuple[str, str]:
    category, _, item_id = key.partition("-")
    return category, item_id


def _decode_payload(value: Any) -> Tuple[bool, Any]:
    if isinstance(value, str):
        try:
            return True, json.loads(value)
        except json.JSONDecodeError:
            return False, None
    return True, value


def _timestamp(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _decode_day(domain: SyncDomain, item: Any) -> Optional[ServerEntry]:
    if not isinstance(item, Mapping):
        return None
    key = item.get("dayKey")
    if not isinstance(key, str) or not key:
        return None
    if domain is SyncDomain.MENU and key == LEGACY_TEMPLATE_KEY:
        return None
    ok, payload = _decode_payload(item.get("data"))
    if not ok:
        return None
    return ServerEntry(key=key, payload=payload, updated_at=_timestamp(item.get("updatedAt")))


def _decode_favorite(item: Any) -> Optional[ServerEntry]:
    if not isinstance(item, Mapping):
        return None
    category = item.get("category")
    item_id = item.get("itemId")
    if not isinstance(category, str) or not category or item_id is None or isinstance(item_id, (dict, list)):
        return None
    ok, payload = _decode_payload(item.get("item"))
    if not ok:
        return None
    payload = dict(payload) if isinstance(payload, Mapping) else {}
    payload.setdefault("id", item_id)
    return ServerEntry(
        key=favorite_key(category, item_id),
        payload=payload,
        updated_at=_timestamp(item.get("updatedAt")),
    )


def decode_wire(domain: SyncDomain, items: Any) -> List[ServerEntry]:
    """Turn a downloaded list into ServerEntry objects, dropping elements that can't be read."""
    if not isinstance(items, list):
        logger.warning("Expected a list of %s, got %s", domain.envelope, type(items).__name__)
        return []
    out: List[ServerEntry] = []
    for item in items:
        entry = _decode_favorite(item) if domain is SyncDomain.FAVORITES else _decode_day(domain, item)
        if entry is None:
            logger.warning("Skipping malformed %s element: %r", domain.value, item)
            continue
        out.append(entry)
    return out


def encode_wire(domain: SyncDomain, entries: Iterable[ServerEntry]) -> List[dict]:
    out: List[dict] = []
    for entry in entries:
        if domain is SyncDomain.FAVORITES:
            category, item_id = split_favorite_key(entry.key)
            item = dict(entry.payload) if isinstance(entry.payload, Mapping) else {}
            out.append(
                {
                    "category": category,
                    "itemId": item.get("id", item_id),
                    "item": item,
                    "updatedAt": entry.updated_at,
                }
            )
        else:
            if domain is SyncDomain.MENU and entry.key == LEGACY_TEMPLATE_KEY:
                continue
            out.append({"dayKey": entry.key, "data": entry.payload, "updatedAt": entry.updated_at})
    return out
