# -*- coding: utf-8 -*-
"""Synced entries — SQLite storage.

The server is deliberately dumb: it never compares timestamps. Uploads are
applied as replace-if-exists-else-insert batches and reads return the whole
per-user collection.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from ..app_db import db_conn
from ..config import settings
from .models import AllowancesWire, DayDomain, DayEntryWire, FavoriteWire, MenuTemplateWire, UpsertResult

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def list_day_entries(user_id: str, domain: DayDomain) -> List[DayEntryWire]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT day_key, data, updated_at FROM day_entries WHERE user_id = ? AND domain = ? ORDER BY day_key",
            (user_id, domain.value),
        ).fetchall()

    out: List[DayEntryWire] = []
    for row in rows:
        try:
            data = json.loads(row["data"])
        except json.JSONDecodeError:
            logger.warning("Skipping %s entry %s for user %s: stored data is not JSON", domain.value, row["day_key"], user_id)
            continue
        out.append(DayEntryWire(day_key=row["day_key"], data=data, updated_at=row["updated_at"]))
    return out


def upsert_day_entries(user_id: str, domain: DayDomain, entries: Iterable[DayEntryWire]) -> List[UpsertResult]:
    results: List[UpsertResult] = []
    with db_conn(settings.app_db_path) as conn:
        for entry in entries:
            exists = conn.execute(
                "SELECT 1 FROM day_entries WHERE user_id = ? AND domain = ? AND day_key = ?",
                (user_id, domain.value, entry.day_key),
            ).fetchone()
            conn.execute(
                """
                INSERT INTO day_entries (user_id, domain, day_key, data, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, domain, day_key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    domain.value,
                    entry.day_key,
                    json.dumps(entry.data, ensure_ascii=False),
                    entry.updated_at or _utc_now(),
                ),
            )
            results.append(UpsertResult(affected_key=entry.day_key, was_insert=exists is None))
    return results


def list_favorites(user_id: str) -> List[FavoriteWire]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT category, item_id, item_data, updated_at FROM favorites WHERE user_id = ? ORDER BY category, item_id",
            (user_id,),
        ).fetchall()

    out: List[FavoriteWire] = []
    for row in rows:
        try:
            item = json.loads(row["item_data"])
        except json.JSONDecodeError:
            logger.warning("Skipping favorite %s-%s for user %s: stored item is not JSON", row["category"], row["item_id"], user_id)
            continue
        if not isinstance(item, dict):
            item = {}
        out.append(
            FavoriteWire(category=row["category"], item_id=row["item_id"], item=item, updated_at=row["updated_at"])
        )
    return out


def replace_favorites(user_id: str, favorites: Iterable[FavoriteWire]) -> List[UpsertResult]:
    """Replace the user's whole favorites set; a favorite missing from the upload is removed."""
    results: Dict[str, UpsertResult] = {}
    with db_conn(settings.app_db_path) as conn:
        existing = {
            f"{row['category']}-{row['item_id']}"
            for row in conn.execute("SELECT category, item_id FROM favorites WHERE user_id = ?", (user_id,))
        }
        conn.execute("DELETE FROM favorites WHERE user_id = ?", (user_id,))
        for fav in favorites:
            key = f"{fav.category}-{fav.item_id}"
            conn.execute(
                """
                INSERT INTO favorites (user_id, category, item_id, item_data, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, category, item_id) DO UPDATE SET
                    item_data = excluded.item_data,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    fav.category,
                    fav.item_id,
                    json.dumps(fav.item, ensure_ascii=False),
                    fav.updated_at or _utc_now(),
                ),
            )
            results[key] = UpsertResult(affected_key=key, was_insert=key not in existing)
    return list(results.values())


def _food_list(raw: str, template_id: int, category: str) -> List[dict]:
    try:
        foods = json.loads(raw or "[]")
    except json.JSONDecodeError:
        logger.warning("Menu template %s: %s is not JSON, serving it empty", template_id, category)
        return []
    return [food for food in foods if isinstance(food, dict)] if isinstance(foods, list) else []


def get_menu_template(user_id: str) -> MenuTemplateWire:
    """The template assigned to `user_id`; empty lists when none is assigned or it was deleted."""
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            """
            SELECT t.id, t.protein, t.carbs, t.fat
            FROM user_menu_templates u JOIN menu_templates t ON t.id = u.template_id
            WHERE u.user_id = ?
            """,
            (user_id,),
        ).fetchone()
    if row is None:
        return MenuTemplateWire()
    return MenuTemplateWire(
        protein=_food_list(row["protein"], row["id"], "protein"),
        carbs=_food_list(row["carbs"], row["id"], "carbs"),
        fat=_food_list(row["fat"], row["id"], "fat"),
    )


def get_allowances(user_id: str) -> AllowancesWire:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT protein, carbs, fat, free_calories FROM user_allowances WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if row is None:
        return AllowancesWire()
    return AllowancesWire(protein=row["protein"], carbs=row["carbs"], fat=row["fat"], free_calories=row["free_calories"])
