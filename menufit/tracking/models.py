# -*- coding: utf-8 -*-
"""Tracking — Pydantic payload models, one per synced domain.

Unknown fields are kept so data written by newer clients survives a round
trip through older ones.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MENU_CATEGORIES = ("protein", "carbs", "fat")


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class FoodItem(_Payload):
    id: Union[int, str]
    name: Optional[str] = None
    name_en: Optional[str] = Field(None, alias="nameEn")
    amount: Optional[str] = None
    amount_en: Optional[str] = Field(None, alias="amountEn")


class MenuDay(_Payload):
    protein: List[FoodItem] = Field(default_factory=list)
    carbs: List[FoodItem] = Field(default_factory=list)
    fat: List[FoodItem] = Field(default_factory=list)
    free_calories: int = Field(0, alias="freeCalories", ge=0)

    @field_validator("free_calories", mode="before")
    @classmethod
    def _coerce_calories(cls, v: Any) -> int:
        try:
            return max(int(v), 0)
        except (TypeError, ValueError):
            return 0

    def items(self, category: str) -> List[FoodItem]:
        if category not in MENU_CATEGORIES:
            raise ValueError(f"unknown menu category: {category}")
        return getattr(self, category)

    @property
    def is_empty(self) -> bool:
        return not (self.protein or self.carbs or self.fat or self.free_calories)


class ExerciseSet(_Payload):
    weight: Union[float, str, None] = None
    reps: Union[int, str, None] = None

    @property
    def is_blank(self) -> bool:
        return self.weight in (None, "") and self.reps in (None, "")


class WorkoutDay(_Payload):
    muscle: bool = False
    cardio: bool = False
    notes: str = ""
    workout_number: Optional[int] = Field(None, alias="workoutNumber")
    completed_exercises: Dict[str, Any] = Field(default_factory=dict, alias="completedExercises")
    exercise_weights: Dict[str, List[ExerciseSet]] = Field(default_factory=dict, alias="exerciseWeights")

    @property
    def is_empty(self) -> bool:
        return not (self.muscle or self.cardio or self.notes or self.exercise_weights)


def day_key(day: date) -> str:
    """Calendar key for menu and workout collections (YYYY-MM-DD)."""
    return day.isoformat()
