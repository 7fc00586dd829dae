"""Pre-built weekly training structures.

Lookup is exact on every key. A near miss returns ``None`` so the caller can
fall back to the AI or to the generated default week.
"""
import logging
from typing import Optional

from fitplan.models.plan_models import (
    EquipmentType,
    Exercise,
    ExperienceLevel,
    GoalType,
    TrainingTemplate,
    WeekProgression,
    WorkoutDay,
)

logger = logging.getLogger(__name__)


def _ex(name, sets, reps, rest, muscles, equipment=()):
    return Exercise(
        name=name,
        sets=sets,
        reps=reps,
        rest=rest,
        muscle_groups=list(muscles),
        equipment=list(equipment),
    )


def _rest_day(day: str) -> WorkoutDay:
    return WorkoutDay(day=day, name="Rest", duration=0, focus="rest", intensity="low", exercises=[])


TRAINING_TEMPLATES = [
    # Fat loss, beginner, full gym
    TrainingTemplate(
        id="fat-loss-beginner-4-gym",
        goal=GoalType.FAT_LOSS,
        level=ExperienceLevel.BEGINNER,
        days_per_week=4,
        session_time=45,
        equipment=EquipmentType.GYM,
        weekly_structure=[
            WorkoutDay(day="Mon", name="Upper body + cardio", duration=45, focus="upper", intensity="medium", exercises=[
                _ex("Bench press", 3, "10-12", 60, ["chest", "triceps"], ["barbell", "bench"]),
                _ex("Barbell row", 3, "10-12", 60, ["back", "biceps"], ["barbell"]),
                _ex("Dumbbell shoulder press", 3, "10-12", 45, ["shoulders"], ["dumbbells"]),
                _ex("Biceps curl", 2, "12-15", 45, ["biceps"], ["dumbbells"]),
                _ex("Treadmill walk", 1, "20 min", 0, ["cardio"], ["treadmill"]),
            ]),
            WorkoutDay(day="Tue", name="Lower body + core", duration=45, focus="lower", intensity="medium", exercises=[
                _ex("Back squat", 3, "10-12", 90, ["quads", "glutes"], ["barbell"]),
                _ex("Romanian deadlift", 3, "10-12", 90, ["hamstrings", "glutes"], ["barbell"]),
                _ex("Leg press", 3, "12-15", 60, ["quads"], ["machine"]),
                _ex("Leg extension", 2, "12-15", 45, ["quads"], ["machine"]),
                _ex("Plank", 3, "30-45s", 30, ["core"]),
            ]),
            WorkoutDay(day="Wed", name="Active recovery", duration=20, focus="rest", intensity="low", exercises=[
                _ex("Easy walk", 1, "20 min", 0, ["cardio"]),
                _ex("Stretching", 1, "10 min", 0, ["mobility"]),
            ]),
            WorkoutDay(day="Thu", name="Full body", duration=45, focus="full", intensity="medium", exercises=[
                _ex("Back squat", 3, "10-12", 90, ["quads", "glutes"], ["barbell"]),
                _ex("Bench press", 3, "10-12", 90, ["chest", "triceps"], ["barbell", "bench"]),
                _ex("Barbell row", 3, "10-12", 90, ["back", "biceps"], ["barbell"]),
                _ex("Dumbbell shoulder press", 2, "10-12", 60, ["shoulders"], ["dumbbells"]),
                _ex("Plank", 3, "30-45s", 30, ["core"]),
            ]),
            WorkoutDay(day="Fri", name="HIIT cardio", duration=30, focus="cardio", intensity="high", exercises=[
                _ex("Burpees", 4, "10", 60, ["cardio", "full"]),
                _ex("Mountain climbers", 4, "20", 45, ["cardio", "core"]),
                _ex("Jumping jacks", 4, "30", 30, ["cardio"]),
                _ex("High knees", 4, "30s", 30, ["cardio"]),
            ]),
            _rest_day("Sat"),
            _rest_day("Sun"),
        ],
        progression=WeekProgression(
            week1="Learn the movements and focus on clean technique.",
            week2="Add 2.5-5 kg to the main lifts.",
            week3="Add a set or a few reps to each exercise.",
            week4="Push the intensity of the HIIT session.",
        ),
    ),
    # Muscle gain, intermediate, full gym (push/pull/legs)
    TrainingTemplate(
        id="muscle-gain-intermediate-5-gym",
        goal=GoalType.MUSCLE_GAIN,
        level=ExperienceLevel.INTERMEDIATE,
        days_per_week=5,
        session_time=60,
        equipment=EquipmentType.GYM,
        weekly_structure=[
            WorkoutDay(day="Mon", name="Push (chest/shoulders/triceps)", duration=60, focus="upper", intensity="high", exercises=[
                _ex("Flat bench press", 4, "6-8", 120, ["chest", "triceps"], ["barbell", "bench"]),
                _ex("Incline dumbbell press", 3, "8-10", 90, ["chest", "triceps"], ["dumbbells", "bench"]),
                _ex("Seated shoulder press", 4, "8-10", 90, ["shoulders"], ["dumbbells"]),
                _ex("Lateral raise", 3, "12-15", 60, ["shoulders"], ["dumbbells"]),
                _ex("Triceps extension", 3, "10-12", 60, ["triceps"], ["dumbbells"]),
            ]),
            WorkoutDay(day="Tue", name="Pull (back/biceps)", duration=60, focus="upper", intensity="high", exercises=[
                _ex("Deadlift", 4, "5-6", 180, ["back", "hamstrings", "glutes"], ["barbell"]),
                _ex("Pull-up or lat pulldown", 4, "8-10", 120, ["back", "biceps"], ["bar", "machine"]),
                _ex("Barbell row", 4, "8-10", 90, ["back", "biceps"], ["barbell"]),
                _ex("Biceps curl", 3, "10-12", 60, ["biceps"], ["dumbbells"]),
                _ex("Hammer curl", 3, "10-12", 60, ["biceps"], ["dumbbells"]),
            ]),
            WorkoutDay(day="Wed", name="Legs (quads/glutes/hamstrings)", duration=60, focus="lower", intensity="high", exercises=[
                _ex("Back squat", 4, "6-8", 180, ["quads", "glutes"], ["barbell"]),
                _ex("Leg press", 4, "10-12", 120, ["quads"], ["machine"]),
                _ex("Romanian deadlift", 3, "8-10", 120, ["hamstrings", "glutes"], ["barbell"]),
                _ex("Leg extension", 3, "12-15", 60, ["quads"], ["machine"]),
                _ex("Leg curl", 3, "12-15", 60, ["hamstrings"], ["machine"]),
            ]),
            WorkoutDay(day="Thu", name="Push (chest/shoulders/triceps)", duration=60, focus="upper", intensity="medium", exercises=[
                _ex("Incline bench press", 4, "8-10", 90, ["chest", "triceps"], ["barbell", "bench"]),
                _ex("Dumbbell fly", 3, "12-15", 60, ["chest"], ["dumbbells", "bench"]),
                _ex("Lateral raise", 4, "12-15", 45, ["shoulders"], ["dumbbells"]),
                _ex("Front raise", 3, "12-15", 45, ["shoulders"], ["dumbbells"]),
                _ex("Parallel bar dips", 3, "8-12", 90, ["triceps", "chest"], ["dip bars"]),
            ]),
            WorkoutDay(day="Fri", name="Pull (back/biceps)", duration=60, focus="upper", intensity="medium", exercises=[
                _ex("One-arm dumbbell row", 4, "10-12", 90, ["back", "biceps"], ["dumbbells", "bench"]),
                _ex("Lat pulldown", 4, "10-12", 90, ["back", "biceps"], ["machine"]),
                _ex("T-bar row", 3, "10-12", 90, ["back"], ["barbell"]),
                _ex("Concentration curl", 3, "12-15", 60, ["biceps"], ["dumbbells"]),
            ]),
            _rest_day("Sat"),
            _rest_day("Sun"),
        ],
        progression=WeekProgression(
            week1="Baseline volume with strict technique.",
            week2="Add 2.5-5 kg to the main lifts.",
            week3="Add one set to each main lift.",
            week4="Deload: drop the load 10-15% and keep the volume.",
        ),
    ),
    # Fat loss, beginner, no equipment
    TrainingTemplate(
        id="fat-loss-beginner-4-none",
        goal=GoalType.FAT_LOSS,
        level=ExperienceLevel.BEGINNER,
        days_per_week=4,
        session_time=30,
        equipment=EquipmentType.NONE,
        weekly_structure=[
            WorkoutDay(day="Mon", name="Full body", duration=30, focus="full", intensity="medium", exercises=[
                _ex("Bodyweight squat", 3, "12-15", 60, ["quads", "glutes"]),
                _ex("Push-up", 3, "8-12", 60, ["chest", "triceps"]),
                _ex("Plank", 3, "30-45s", 45, ["core"]),
                _ex("Burpees", 3, "8-10", 90, ["cardio", "full"]),
            ]),
            WorkoutDay(day="Tue", name="HIIT cardio", duration=20, focus="cardio", intensity="high", exercises=[
                _ex("Jumping jacks", 4, "30", 30, ["cardio"]),
                _ex("Mountain climbers", 4, "20", 30, ["cardio", "core"]),
                _ex("High knees", 4, "30s", 30, ["cardio"]),
            ]),
            WorkoutDay(day="Wed", name="Active recovery", duration=20, focus="rest", intensity="low", exercises=[
                _ex("Walk", 1, "20 min", 0, ["cardio"]),
            ]),
            WorkoutDay(day="Thu", name="Full body", duration=30, focus="full", intensity="medium", exercises=[
                _ex("Bodyweight squat", 3, "12-15", 60, ["quads", "glutes"]),
                _ex("Push-up", 3, "8-12", 60, ["chest", "triceps"]),
                _ex("Plank", 3, "30-45s", 45, ["core"]),
                _ex("Burpees", 3, "8-10", 90, ["cardio", "full"]),
            ]),
            WorkoutDay(day="Fri", name="HIIT cardio", duration=20, focus="cardio", intensity="high", exercises=[
                _ex("Jumping jacks", 4, "30", 30, ["cardio"]),
                _ex("Mountain climbers", 4, "20", 30, ["cardio", "core"]),
                _ex("High knees", 4, "30s", 30, ["cardio"]),
            ]),
            _rest_day("Sat"),
            _rest_day("Sun"),
        ],
        progression=WeekProgression(
            week1="Get used to the movements, technique first.",
            week2="Add reps or time to each exercise.",
            week3="Add a set to each exercise.",
            week4="Shorten the rests to raise the intensity.",
        ),
    ),
]


def find_matching_training_template(
    goal: GoalType,
    days_per_week: int,
    session_time: int,
    equipment: EquipmentType,
    level: ExperienceLevel = ExperienceLevel.BEGINNER,
) -> Optional[TrainingTemplate]:
    for template in TRAINING_TEMPLATES:
        if (
            template.goal == goal
            and template.days_per_week == days_per_week
            and template.session_time == session_time
            and template.equipment == equipment
            and template.level == level
        ):
            logger.debug("Training template %s matched", template.id)
            return template
    return None
