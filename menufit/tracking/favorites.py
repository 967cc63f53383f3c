# -*- coding: utf-8 -*-
"""Favorite foods (synced) and recently used foods (local only)."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..sync.domains import LocalDomain, SyncDomain, favorite_key, split_favorite_key
from ..sync.models import TrackedEntry
from ..sync.session import SyncSession
from .models import MENU_CATEGORIES

MAX_RECENT_ITEMS = 10


def is_favorite(favorites: Mapping[str, TrackedEntry], category: str, item_id: Any) -> bool:
    return favorite_key(category, item_id) in favorites


def favorites_by_category(favorites: Mapping[str, TrackedEntry]) -> Dict[str, List[Dict[str, Any]]]:
    """Group the favorites collection the way the food picker lists it."""
    grouped: Dict[str, List[Dict[str, Any]]] = {category: [] for category in MENU_CATEGORIES}
    for key, entry in favorites.items():
        category, _ = split_favorite_key(key)
        item = dict(entry.payload) if isinstance(entry.payload, Mapping) else {}
        item["updatedAt"] = entry.updated_at
        grouped.setdefault(category, []).append(item)
    return grouped


async def toggle_favorite(session: SyncSession, category: str, food: Mapping[str, Any]) -> bool:
    """Add `food` to favorites, or remove it if already there. Returns True when it is now a favorite."""
    key = favorite_key(category, food["id"])
    if key in session.entries(SyncDomain.FAVORITES):
        await session.remove(SyncDomain.FAVORITES, key)
        return False
    await session.record(SyncDomain.FAVORITES, key, dict(food))
    return True


def add_to_recent(recent: Mapping[str, List[Dict[str, Any]]], category: str, food: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Move `food` to the front of the category's recent list, keeping the newest MAX_RECENT_ITEMS."""
    out = {cat: list(items) for cat, items in recent.items()}
    items = [item for item in out.get(category, []) if item.get("id") != food.get("id")]
    items.insert(0, dict(food))
    out[category] = items[:MAX_RECENT_ITEMS]
    return out


def remember_recent(session: SyncSession, category: str, food: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    recent = session.local_state(LocalDomain.RECENT_FOODS, default={}) or {}
    updated = add_to_recent(recent, category, food)
    session.store_local_state(LocalDomain.RECENT_FOODS, updated)
    return updated
