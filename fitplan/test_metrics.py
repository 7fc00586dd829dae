# test_metrics.py

import pytest

from fitplan.logic.metrics import (
    DEFAULT_DAILY_CALORIES,
    calculate_bmr,
    calculate_daily_calories,
    calculate_muscle_group_volume,
    estimate_session_minutes,
    macro_calorie_percentages,
    macro_targets_from_split,
    parse_rep_seconds,
    round_half_up,
)
from fitplan.models.plan_models import Exercise, GoalType, MacroTargets, WorkoutDay


@pytest.mark.parametrize("goal, expected", [
    (GoalType.FAT_LOSS, 1800),
    (GoalType.MUSCLE_GAIN, 2800),
    (GoalType.MAINTENANCE, 2200),
    (GoalType.PERFORMANCE, 2500),
])
def test_missing_biometrics_use_goal_default(goal, expected):
    assert calculate_daily_calories(goal) == expected
    # one missing field is enough
    assert calculate_daily_calories(goal, 80, 180, 30, "male", None) == expected
    assert calculate_daily_calories(goal, None, 180, 30, "male", "moderate") == expected
    assert DEFAULT_DAILY_CALORIES[goal] == expected


def test_male_reference_value():
    # 10*80 + 6.25*180 - 5*30 + 5 = 1780, * 1.55 = 2759
    assert calculate_bmr(80, 180, 30, "male") == pytest.approx(1780)
    assert calculate_daily_calories(GoalType.MAINTENANCE, 80, 180, 30, "male", "moderate") == 2759


def test_female_reference_value():
    # 10*60 + 6.25*165 - 5*28 - 161 = 1330.25, * 1.2 * 0.8 = 1277.04
    assert calculate_bmr(60, 165, 28, "female") == pytest.approx(1330.25)
    assert calculate_daily_calories(GoalType.FAT_LOSS, 60, 165, 28, "female", "sedentary") == 1277


def test_unknown_activity_level_uses_light_multiplier():
    # 1780 * 1.375 = 2447.5, rounded half up
    assert calculate_daily_calories(GoalType.MAINTENANCE, 80, 180, 30, "male", "couch") == 2448


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2


def test_macro_targets_from_split():
    macros = macro_targets_from_split(1800, 30, 40, 30)
    assert macros.protein == pytest.approx(135)
    assert macros.carbs == pytest.approx(180)
    assert macros.fat == pytest.approx(60)


def test_macro_percentages():
    percentages = macro_calorie_percentages(MacroTargets(protein=135, carbs=180, fat=60))
    assert percentages["protein"] == pytest.approx(30)
    assert percentages["carbs"] == pytest.approx(40)
    assert percentages["fat"] == pytest.approx(30)
    assert macro_calorie_percentages(MacroTargets()) is None


def test_volume_of_empty_structure_is_empty():
    assert calculate_muscle_group_volume([]) == {}
    days = [WorkoutDay(day=day, focus="rest") for day in ["Mon", "Tue"]]
    assert calculate_muscle_group_volume(days) == {}


def test_volume_sums_sets_across_days():
    days = [
        WorkoutDay(day=day, exercises=[Exercise(name="Squat", sets=3, reps="10", muscle_groups=["A"])])
        for day in ["Mon", "Tue", "Thu", "Sat"]
    ]
    assert calculate_muscle_group_volume(days) == {"A": 12}


def test_volume_counts_every_listed_group():
    day = WorkoutDay(day="Mon", exercises=[
        Exercise(name="Bench press", sets=3, reps="8", muscle_groups=["chest", "triceps"]),
        Exercise(name="Dips", sets=2, reps="10", muscle_groups=["triceps"]),
    ])
    assert calculate_muscle_group_volume([day]) == {"chest": 3, "triceps": 5}


def test_volume_skips_malformed_raw_entries():
    raw = [
        {"day": "Mon", "exercises": "not a list"},
        {"day": "Tue"},
        {"day": "Wed", "exercises": [None, {"name": "Row", "sets": 4, "muscleGroups": "back"}]},
        {"day": "Thu", "exercises": [{"name": "Row", "sets": 4, "muscleGroups": ["back"]}]},
    ]
    assert calculate_muscle_group_volume(raw) == {"back": 4}


def test_parse_rep_seconds():
    assert parse_rep_seconds("10-12") == 10
    assert parse_rep_seconds("30s") == 30
    assert parse_rep_seconds("AMRAP") == 30
    assert parse_rep_seconds("") == 30


def test_estimate_session_minutes():
    exercises = [
        Exercise(name="Squat", sets=3, reps="10", rest=50),
        Exercise(name="Plank", sets=2, reps="hold", rest=30),
    ]
    # 3 * (10 + 50) + 2 * (30 + 30) = 300 seconds
    assert estimate_session_minutes(exercises) == pytest.approx(5)


def test_volume_reads_set_counts_written_as_text():
    raw = [
        {"day": "Mon", "exercises": [
            {"name": "Row", "sets": "3", "muscleGroups": ["back"]},
            {"name": "Pull-up", "sets": "3-4", "muscleGroups": ["back"]},
            {"name": "Shrug", "sets": "a few", "muscleGroups": ["traps"]},
            {"name": "Face pull", "muscleGroups": ["shoulders"]},
        ]},
    ]
    assert calculate_muscle_group_volume(raw) == {"back": 6, "shoulders": 0}
