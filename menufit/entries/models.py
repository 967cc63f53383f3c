# -*- coding: utf-8 -*-
"""Synced entries — wire models shared by the upload/download endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DayDomain(str, Enum):
    menu = "menu"
    workouts = "workouts"


class DayEntryWire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_key: str = Field(..., alias="dayKey", min_length=1)
    data: Any = Field(default_factory=dict)
    updated_at: Optional[str] = Field(None, alias="updatedAt", description="ISO8601 timestamp")


class FavoriteWire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: str = Field(..., min_length=1)
    item_id: str = Field(..., alias="itemId")
    item: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[str] = Field(None, alias="updatedAt", description="ISO8601 timestamp")

    @field_validator("item_id", mode="before")
    @classmethod
    def _item_id_as_str(cls, v: Any) -> Any:
        # Food ids are numeric in the catalog; store them as text so composite keys stay stable.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v


class DayEntriesResponse(BaseModel):
    entries: List[DayEntryWire] = Field(default_factory=list)


class FavoritesResponse(BaseModel):
    favorites: List[FavoriteWire] = Field(default_factory=list)


class MenuTemplateWire(BaseModel):
    """Foods a user may pick from, per category. Empty lists mean "use the built-in catalog"."""

    protein: List[Dict[str, Any]] = Field(default_factory=list)
    carbs: List[Dict[str, Any]] = Field(default_factory=list)
    fat: List[Dict[str, Any]] = Field(default_factory=list)


class MenuTemplateResponse(BaseModel):
    template: MenuTemplateWire = Field(default_factory=MenuTemplateWire)


class AllowancesWire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protein: int = 5
    carbs: int = 5
    fat: int = 1
    free_calories: int = Field(200, alias="freeCalories")


class AllowancesResponse(BaseModel):
    allowances: AllowancesWire = Field(default_factory=AllowancesWire)


class SyncAck(BaseModel):
    success: bool = True
    upserted: int = 0
    inserted: int = 0


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of writing one row: which key it touched and whether it was new."""

    affected_key: str
    was_insert: bool
