"""Deterministic default week, used when neither a template nor the AI provides training."""
from typing import List

from fitplan.models.plan_models import (
    WEEK_DAYS,
    DayFocus,
    EquipmentType,
    Exercise,
    UserPreferences,
    WorkoutDay,
)

FALLBACK_PROGRESSION = "Add a set or a few reps each week; keep the technique clean before adding load."

# archetype -> (session name, intensity, muscle groups)
_ARCHETYPES = [
    (DayFocus.UPPER, "Upper body", "medium", ["chest", "back", "shoulders"]),
    (DayFocus.LOWER, "Lower body", "medium", ["quads", "hamstrings", "glutes"]),
    (DayFocus.FULL, "Full body", "medium", ["quads", "chest", "back"]),
    (DayFocus.CARDIO, "Cardio", "high", ["cardio"]),
]

_MAIN_EXERCISES = {
    DayFocus.UPPER: {
        EquipmentType.NONE: "Push-up",
        EquipmentType.BASIC: "Dumbbell bench press",
        EquipmentType.GYM: "Barbell bench press",
    },
    DayFocus.LOWER: {
        EquipmentType.NONE: "Bodyweight squat",
        EquipmentType.BASIC: "Goblet squat",
        EquipmentType.GYM: "Barbell back squat",
    },
    DayFocus.FULL: {
        EquipmentType.NONE: "Burpee",
        EquipmentType.BASIC: "Dumbbell thruster",
        EquipmentType.GYM: "Barbell deadlift",
    },
    DayFocus.CARDIO: {
        EquipmentType.NONE: "Interval run",
        EquipmentType.BASIC: "Jump rope intervals",
        EquipmentType.GYM: "Rowing machine intervals",
    },
}


def training_day_indexes(days_per_week: int) -> List[int]:
    """Spread the sessions over the week, for example 4 days -> Mon, Tue, Thu, Sat."""
    days_per_week = max(0, min(days_per_week, len(WEEK_DAYS)))
    return [i * len(WEEK_DAYS) // days_per_week for i in range(days_per_week)]


def _workout(day: str, archetype_index: int, preferences: UserPreferences) -> WorkoutDay:
    focus, name, intensity, muscles = _ARCHETYPES[archetype_index % len(_ARCHETYPES)]
    main_name = _MAIN_EXERCISES[focus][preferences.equipment]
    exercises = [
        Exercise(name="Warm-up", sets=1, reps="5 min", rest=0, muscle_groups=["mobility"]),
        Exercise(name=main_name, sets=3, reps="10-12", rest=60, muscle_groups=list(muscles)),
        Exercise(name="Cool-down stretch", sets=1, reps="5 min", rest=0, muscle_groups=["mobility"]),
    ]
    return WorkoutDay(
        day=day,
        name=name,
        duration=preferences.session_time,
        focus=focus.value,
        intensity=intensity,
        exercises=exercises,
    )


def build_fallback_week(preferences: UserPreferences) -> List[WorkoutDay]:
    workout_days = set(training_day_indexes(preferences.days_per_week))
    week = []
    archetype_index = 0
    for index, day in enumerate(WEEK_DAYS):
        if index in workout_days:
            week.append(_workout(day, archetype_index, preferences))
            archetype_index += 1
        else:
            week.append(WorkoutDay(day=day, name="Rest", duration=0, focus="rest", intensity="low"))
    return week
