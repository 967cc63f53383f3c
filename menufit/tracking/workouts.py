# -*- coding: utf-8 -*-
"""Workout day helpers, including the per-exercise weight log."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..sync.models import TrackedEntry
from .models import ExerciseSet, WorkoutDay

logger = logging.getLogger(__name__)

DEFAULT_WEEKLY_GOALS: Dict[str, int] = {"muscle": 4, "cardio": 3}


def workout_day_from_entry(entry: Optional[TrackedEntry]) -> WorkoutDay:
    if entry is None or not entry.payload:
        return WorkoutDay()
    try:
        return WorkoutDay.model_validate(entry.payload)
    except ValidationError as exc:
        logger.warning("Unreadable workout day, starting empty: %s", exc.errors()[0].get("msg"))
        return WorkoutDay()


def toggle_cardio(day: WorkoutDay) -> WorkoutDay:
    # Marking cardio replaces a muscle session on the same day.
    if day.cardio:
        return day.model_copy(update={"cardio": False})
    return day.model_copy(update={"cardio": True, "muscle": False})


def save_exercise_progress(day: WorkoutDay, workout_number: int, completed: Optional[Mapping[str, Any]]) -> WorkoutDay:
    return day.model_copy(
        update={"workout_number": workout_number, "completed_exercises": dict(completed or {})}
    )


def mark_workout_complete(day: WorkoutDay, workout_number: int, completed: Optional[Mapping[str, Any]]) -> WorkoutDay:
    return save_exercise_progress(day, workout_number, completed).model_copy(update={"muscle": True})


def unmark_workout(day: WorkoutDay) -> WorkoutDay:
    return day.model_copy(update={"muscle": False, "workout_number": None, "completed_exercises": {}})


def set_notes(day: WorkoutDay, notes: str) -> WorkoutDay:
    return day.model_copy(update={"notes": (notes or "").strip()})


@dataclass
class WeightLogUpdate:
    day: WorkoutDay
    latest_weights: Dict[str, Any] = field(default_factory=dict)
    latest_sets: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


def update_exercise_weights(
    day: WorkoutDay,
    exercise_key: str,
    sets: Iterable[Mapping[str, Any]],
    latest_weights: Optional[Mapping[str, Any]] = None,
    latest_sets: Optional[Mapping[str, List[Dict[str, Any]]]] = None,
) -> WeightLogUpdate:
    """Record the sets done for one exercise on `day`.

    Also refreshes the two local-only logs used to prefill the next session:
    the latest first-set weight and the latest full set list per exercise.
    Blank set lists remove the exercise everywhere.
    """
    parsed = [ExerciseSet.model_validate(dict(s)) for s in sets]
    all_blank = all(s.is_blank for s in parsed)

    day_weights = dict(day.exercise_weights)
    if all_blank:
        day_weights.pop(exercise_key, None)
    else:
        day_weights[exercise_key] = parsed
    updated_day = day.model_copy(update={"exercise_weights": day_weights})

    weights = dict(latest_weights or {})
    first_weight = parsed[0].weight if parsed else None
    if all_blank or first_weight in (None, ""):
        weights.pop(exercise_key, None)
    else:
        weights[exercise_key] = first_weight

    sets_log = dict(latest_sets or {})
    if all_blank:
        sets_log.pop(exercise_key, None)
    else:
        sets_log[exercise_key] = [s.model_dump(mode="json", exclude_none=True) for s in parsed]

    return WeightLogUpdate(day=updated_day, latest_weights=weights, latest_sets=sets_log)


def weekly_counts(days: Iterable[WorkoutDay]) -> Dict[str, int]:
    counts = {"muscle": 0, "cardio": 0}
    for day in days:
        counts["muscle"] += int(day.muscle)
        counts["cardio"] += int(day.cardio)
    return counts


def weekly_progress(days: Iterable[WorkoutDay], goals: Optional[Mapping[str, int]] = None) -> Dict[str, Dict[str, int]]:
    """Sessions done against the weekly goal, per kind; `remaining` never goes below zero."""
    targets = {**DEFAULT_WEEKLY_GOALS, **(goals or {})}
    counts = weekly_counts(days)
    return {
        kind: {"done": counts[kind], "goal": int(targets[kind]), "remaining": max(int(targets[kind]) - counts[kind], 0)}
        for kind in ("muscle", "cardio")
    }
