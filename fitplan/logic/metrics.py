"""Calorie targets, macro grams and training volume."""
import math
import re
from typing import Any, Dict, Iterable, Optional

from fitplan.models.plan_models import GoalType, MacroTargets, leading_number

KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}

DEFAULT_DAILY_CALORIES = {
    GoalType.FAT_LOSS: 1800,
    GoalType.MUSCLE_GAIN: 2800,
    GoalType.MAINTENANCE: 2200,
    GoalType.PERFORMANCE: 2500,
}

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very-active": 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.375

GOAL_MULTIPLIERS = {
    GoalType.FAT_LOSS: 0.8,
    GoalType.MUSCLE_GAIN: 1.15,
    GoalType.MAINTENANCE: 1.0,
    GoalType.PERFORMANCE: 1.1,
}

DEFAULT_MACRO_SPLIT = (30, 40, 30)

# seconds assumed for a set whose reps cannot be read as a number
DEFAULT_SET_SECONDS = 30
DEFAULT_REST_SECONDS = 60


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_bmr(weight: float, height: float, age: int, gender: str) -> float:
    """Mifflin-St Jeor basal metabolic rate, in kcal/day."""
    base = 10 * weight + 6.25 * height - 5 * age
    if gender == "male":
        return base + 5
    return base - 161


def calculate_daily_calories(
    goal: GoalType,
    weight: Optional[float] = None,
    height: Optional[float] = None,
    age: Optional[int] = None,
    gender: Optional[str] = None,
    activity_level: Optional[str] = None,
) -> int:
    """Daily calorie target for a goal.

    Any missing biometric falls back to the fixed per-goal default.
    """
    if not weight or not height or not age or not gender or not activity_level:
        return DEFAULT_DAILY_CALORIES[goal]

    bmr = calculate_bmr(weight, height, age, gender)
    tdee = bmr * ACTIVITY_MULTIPLIERS.get(activity_level, DEFAULT_ACTIVITY_MULTIPLIER)
    return round_half_up(tdee * GOAL_MULTIPLIERS[goal])


def macro_targets_from_split(daily_calories: float, protein_pct: float, carbs_pct: float, fat_pct: float) -> MacroTargets:
    """Convert a percentage split of the calorie target into grams."""
    return MacroTargets(
        protein=daily_calories * protein_pct / 100 / KCAL_PER_GRAM["protein"],
        carbs=daily_calories * carbs_pct / 100 / KCAL_PER_GRAM["carbs"],
        fat=daily_calories * fat_pct / 100 / KCAL_PER_GRAM["fat"],
    )


def macro_calorie_percentages(macros: MacroTargets) -> Optional[Dict[str, float]]:
    """Share of calories from each macro, or None when the macros carry no calories."""
    kcal = {
        "protein": macros.protein * KCAL_PER_GRAM["protein"],
        "carbs": macros.carbs * KCAL_PER_GRAM["carbs"],
        "fat": macros.fat * KCAL_PER_GRAM["fat"],
    }
    total = sum(kcal.values())
    if total <= 0:
        return None
    return {name: value / total * 100 for name, value in kcal.items()}


def _get(item: Any, key: str, default=None):
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


def _as_set_count(value) -> Optional[int]:
    """Sets of a raw exercise. Missing counts as 0, unreadable text as None."""
    if value is None:
        return 0
    number = leading_number(value)
    return int(number) if number is not None else None


def calculate_muscle_group_volume(weekly_structure: Iterable[Any]) -> Dict[str, int]:
    """Total weekly sets per muscle group.

    Accepts WorkoutDay models or raw dicts straight from an AI response. Days or
    exercises without a usable exercise/muscle-group list or a readable set
    count are skipped.
    """
    volume: Dict[str, int] = {}
    for day in weekly_structure or []:
        exercises = _get(day, "exercises")
        if not isinstance(exercises, list):
            continue
        for exercise in exercises:
            if exercise is None:
                continue
            muscles = _get(exercise, "muscle_groups")
            if muscles is None and isinstance(exercise, dict):
                muscles = exercise.get("muscleGroups")
            if not isinstance(muscles, list):
                continue
            sets = _as_set_count(_get(exercise, "sets"))
            if sets is None:
                continue
            for muscle in muscles:
                volume[muscle] = volume.get(muscle, 0) + sets
    return volume


_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_rep_seconds(reps: str) -> int:
    """Seconds credited to one set: the leading number of the reps text, else 30."""
    match = _LEADING_INT.match(reps or "")
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return DEFAULT_SET_SECONDS


def estimate_session_minutes(exercises: Iterable[Any]) -> float:
    total_seconds = 0
    for exercise in exercises:
        sets = exercise.sets or 0
        rest = exercise.rest if exercise.rest is not None else DEFAULT_REST_SECONDS
        total_seconds += sets * parse_rep_seconds(exercise.reps) + sets * rest
    return total_seconds / 60
