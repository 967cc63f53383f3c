# -*- coding: utf-8 -*-
"""Menu day helpers: add/remove food, free calories, allowance bookkeeping."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..sync.domains import LocalDomain
from ..sync.errors import SyncError
from ..sync.models import TrackedEntry
from ..sync.session import SyncSession
from .models import MENU_CATEGORIES, FoodItem, MenuDay

logger = logging.getLogger(__name__)

DEFAULT_ALLOWANCE: Dict[str, int] = {"protein": 5, "carbs": 5, "fat": 1, "freeCalories": 200}


def empty_menu_day() -> MenuDay:
    return MenuDay()


def menu_day_from_entry(entry: Optional[TrackedEntry]) -> MenuDay:
    if entry is None or not entry.payload:
        return empty_menu_day()
    try:
        return MenuDay.model_validate(entry.payload)
    except ValidationError as exc:
        logger.warning("Unreadable menu day, starting empty: %s", exc.errors()[0].get("msg"))
        return empty_menu_day()


def _next_item_id(day: MenuDay) -> int:
    # Millisecond ids like the web client; bump past collisions within one millisecond.
    candidate = int(time.time() * 1000)
    taken = {item.id for category in ("protein", "carbs", "fat") for item in day.items(category)}
    while candidate in taken:
        candidate += 1
    return candidate


def add_food_item(day: MenuDay, category: str, food: Mapping[str, Any]) -> MenuDay:
    """Append a catalog food to `category`; the copy gets its own per-day id."""
    items = list(day.items(category))
    item = FoodItem.model_validate({**food, "id": _next_item_id(day)})
    items.append(item)
    return day.model_copy(update={category: items})


def remove_food_item(day: MenuDay, category: str, item_id: Any) -> MenuDay:
    items = [item for item in day.items(category) if item.id != item_id]
    return day.model_copy(update={category: items})


def set_free_calories(day: MenuDay, value: Any) -> MenuDay:
    try:
        calories = max(int(str(value).strip() or 0), 0)
    except ValueError:
        calories = 0
    return day.model_copy(update={"free_calories": calories})


def remaining_allowance(day: MenuDay, category: str, allowance: Optional[Mapping[str, int]] = None) -> int:
    limits = allowance or DEFAULT_ALLOWANCE
    if category == "freeCalories":
        return int(limits.get("freeCalories", 0)) - day.free_calories
    return int(limits.get(category, 0)) - len(day.items(category))


def can_add(day: MenuDay, category: str, allowance: Optional[Mapping[str, int]] = None) -> bool:
    return remaining_allowance(day, category, allowance) > 0


async def load_allowance(session: SyncSession) -> Dict[str, int]:
    """Daily limits assigned to the user.

    Offline, the last limits fetched on this device are used, then DEFAULT_ALLOWANCE.
    """
    try:
        fetched = await session.client.fetch_allowances(session.token)
    except SyncError as exc:
        logger.warning("Could not fetch allowances, using cached limits: %s", exc)
        cached = session.local_state(LocalDomain.ALLOWANCES)
        return {**DEFAULT_ALLOWANCE, **cached} if isinstance(cached, dict) else dict(DEFAULT_ALLOWANCE)
    allowance = {**DEFAULT_ALLOWANCE, **fetched}
    session.store_local_state(LocalDomain.ALLOWANCES, allowance)
    return allowance


async def load_menu_template(session: SyncSession) -> Dict[str, List[Dict[str, Any]]]:
    """Foods the user may pick per category; an empty category means the full catalog."""
    try:
        template = await session.client.fetch_menu_template(session.token)
    except SyncError as exc:
        logger.warning("Could not fetch menu template, using cached copy: %s", exc)
        cached = session.local_state(LocalDomain.MENU_TEMPLATE)
        cached = cached if isinstance(cached, dict) else {}
        return {category: list(cached.get(category) or []) for category in MENU_CATEGORIES}
    session.store_local_state(LocalDomain.MENU_TEMPLATE, template)
    return template
