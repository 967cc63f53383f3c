# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import date

from menufit.sync.models import TrackedEntry
from menufit.tracking import favorites, menu, workouts
from menufit.tracking.models import MenuDay, WorkoutDay, day_key

EGG = {"id": 3, "name": "Egg", "nameEn": "Egg", "amount": "2 pcs"}


class TestMenuDay(unittest.TestCase):
    def test_add_food_gives_unique_ids(self) -> None:
        day = menu.empty_menu_day()
        day = menu.add_food_item(day, "protein", EGG)
        day = menu.add_food_item(day, "protein", EGG)

        ids = [item.id for item in day.protein]
        self.assertEqual(len(set(ids)), 2)
        self.assertEqual(day.protein[0].name_en, "Egg")

    def test_add_does_not_touch_input(self) -> None:
        day = menu.empty_menu_day()
        menu.add_food_item(day, "carbs", {"id": 9, "name": "Rice"})
        self.assertEqual(day.carbs, [])

    def test_remove_food_item(self) -> None:
        day = menu.add_food_item(menu.empty_menu_day(), "fat", {"id": 1, "name": "Avocado"})
        item_id = day.fat[0].id
        self.assertEqual(menu.remove_food_item(day, "fat", item_id).fat, [])

    def test_unknown_category_rejected(self) -> None:
        with self.assertRaises(ValueError):
            menu.add_food_item(menu.empty_menu_day(), "sweets", EGG)

    def test_free_calories_parsing(self) -> None:
        day = menu.empty_menu_day()
        self.assertEqual(menu.set_free_calories(day, "150").free_calories, 150)
        self.assertEqual(menu.set_free_calories(day, "").free_calories, 0)
        self.assertEqual(menu.set_free_calories(day, "abc").free_calories, 0)
        self.assertEqual(menu.set_free_calories(day, -20).free_calories, 0)

    def test_remaining_allowance_defaults(self) -> None:
        day = menu.add_food_item(menu.empty_menu_day(), "fat", {"id": 1})
        self.assertEqual(menu.remaining_allowance(day, "protein"), 5)
        self.assertEqual(menu.remaining_allowance(day, "fat"), 0)
        self.assertFalse(menu.can_add(day, "fat"))

        day = menu.set_free_calories(day, 120)
        self.assertEqual(menu.remaining_allowance(day, "freeCalories"), 80)
        self.assertEqual(menu.remaining_allowance(day, "protein", {"protein": 2}), 2)

    def test_menu_day_from_entry(self) -> None:
        entry = TrackedEntry({"protein": [EGG], "freeCalories": "90", "note": "kept"}, "2024-06-01T00:00:00Z")
        day = menu.menu_day_from_entry(entry)

        self.assertEqual(day.free_calories, 90)
        self.assertEqual(day.protein[0].id, 3)
        dumped = day.model_dump(mode="json", by_alias=True)
        self.assertEqual(dumped["note"], "kept")
        self.assertEqual(dumped["freeCalories"], 90)

    def test_unreadable_entry_is_empty(self) -> None:
        self.assertTrue(menu.menu_day_from_entry(None).is_empty)
        with self.assertLogs("menufit.tracking.menu", level="WARNING"):
            day = menu.menu_day_from_entry(TrackedEntry({"protein": "not a list"}, None))
        self.assertTrue(day.is_empty)

    def test_day_key(self) -> None:
        self.assertEqual(day_key(date(2024, 6, 1)), "2024-06-01")


class TestWorkoutDay(unittest.TestCase):
    def test_cardio_turns_muscle_off(self) -> None:
        day = WorkoutDay(muscle=True)
        day = workouts.toggle_cardio(day)
        self.assertTrue(day.cardio)
        self.assertFalse(day.muscle)
        self.assertFalse(workouts.toggle_cardio(day).cardio)

    def test_mark_and_unmark_workout(self) -> None:
        day = workouts.mark_workout_complete(WorkoutDay(), 3, {"bench": True})
        self.assertTrue(day.muscle)
        self.assertEqual(day.workout_number, 3)

        day = workouts.unmark_workout(day)
        self.assertFalse(day.muscle)
        self.assertIsNone(day.workout_number)
        self.assertEqual(day.completed_exercises, {})

    def test_save_progress_keeps_muscle_flag(self) -> None:
        day = workouts.save_exercise_progress(WorkoutDay(), 1, {"row": True})
        self.assertFalse(day.muscle)
        self.assertEqual(day.completed_exercises, {"row": True})

    def test_set_notes(self) -> None:
        self.assertEqual(workouts.set_notes(WorkoutDay(), "  easy run ").notes, "easy run")

    def test_weight_log_update(self) -> None:
        update = workouts.update_exercise_weights(
            WorkoutDay(),
            "squat",
            [{"weight": 80.0, "reps": 5}, {"weight": 85.0, "reps": 3}],
            latest_weights={"bench": 60.0},
        )

        self.assertEqual(len(update.day.exercise_weights["squat"]), 2)
        self.assertEqual(update.latest_weights, {"bench": 60.0, "squat": 80.0})
        self.assertEqual(update.latest_sets["squat"], [{"weight": 80.0, "reps": 5}, {"weight": 85.0, "reps": 3}])

    def test_blank_sets_remove_exercise(self) -> None:
        first = workouts.update_exercise_weights(WorkoutDay(), "squat", [{"weight": 80.0, "reps": 5}])
        cleared = workouts.update_exercise_weights(
            first.day,
            "squat",
            [{"weight": "", "reps": ""}, {}],
            latest_weights=first.latest_weights,
            latest_sets=first.latest_sets,
        )

        self.assertNotIn("squat", cleared.day.exercise_weights)
        self.assertEqual(cleared.latest_weights, {})
        self.assertEqual(cleared.latest_sets, {})
        self.assertIn("squat", first.day.exercise_weights)

    def test_weekly_counts(self) -> None:
        days = [WorkoutDay(muscle=True), WorkoutDay(cardio=True), WorkoutDay(muscle=True), WorkoutDay()]
        self.assertEqual(workouts.weekly_counts(days), {"muscle": 2, "cardio": 1})

    def test_weekly_progress_against_goals(self) -> None:
        days = [WorkoutDay(muscle=True), WorkoutDay(cardio=True), WorkoutDay(cardio=True), WorkoutDay(cardio=True)]

        self.assertEqual(
            workouts.weekly_progress(days),
            {"muscle": {"done": 1, "goal": 4, "remaining": 3}, "cardio": {"done": 3, "goal": 3, "remaining": 0}},
        )
        # Going past the goal does not make `remaining` negative.
        progress = workouts.weekly_progress(days, {"cardio": 2})
        self.assertEqual(progress["cardio"], {"done": 3, "goal": 2, "remaining": 0})
        self.assertEqual(progress["muscle"]["goal"], 4)

    def test_workout_day_from_entry_keeps_aliases(self) -> None:
        entry = TrackedEntry({"muscle": True, "workoutNumber": 4, "exerciseWeights": {"dl": [{"weight": 100.0, "reps": 1}]}})
        day = workouts.workout_day_from_entry(entry)
        self.assertEqual(day.workout_number, 4)
        self.assertEqual(day.exercise_weights["dl"][0].reps, 1)


class TestFavoritesAndRecent(unittest.TestCase):
    def test_favorites_grouped_by_category(self) -> None:
        favs = {
            "protein-3": TrackedEntry({"id": 3, "name": "Egg"}, "2024-01-01T00:00:00Z"),
            "carbs-9": TrackedEntry({"id": 9, "name": "Rice"}, "2024-01-02T00:00:00Z"),
        }
        grouped = favorites.favorites_by_category(favs)

        self.assertEqual(grouped["fat"], [])
        self.assertEqual(grouped["protein"], [{"id": 3, "name": "Egg", "updatedAt": "2024-01-01T00:00:00Z"}])
        self.assertTrue(favorites.is_favorite(favs, "carbs", 9))
        self.assertFalse(favorites.is_favorite(favs, "protein", 9))

    def test_recent_moves_to_front_without_duplicates(self) -> None:
        recent = {"protein": [{"id": 1}, {"id": 2}]}
        updated = favorites.add_to_recent(recent, "protein", {"id": 2})
        self.assertEqual([item["id"] for item in updated["protein"]], [2, 1])
        self.assertEqual([item["id"] for item in recent["protein"]], [1, 2])

    def test_recent_is_capped(self) -> None:
        recent = {}
        for food_id in range(15):
            recent = favorites.add_to_recent(recent, "carbs", {"id": food_id})
        self.assertEqual(len(recent["carbs"]), favorites.MAX_RECENT_ITEMS)
        self.assertEqual(recent["carbs"][0]["id"], 14)


if __name__ == "__main__":
    unittest.main()
