# test_validations.py

from datetime import datetime, timezone

import pytest

from fitplan.logic.metrics import macro_targets_from_split
from fitplan.logic.validations import (
    CALORIE_CONSISTENCY,
    CALORIES_IN_RANGE,
    CALORIES_MAXIMUM,
    CALORIES_MINIMUM,
    MACRO_CARBS_MINIMUM,
    MACRO_FAT_MINIMUM,
    MACRO_PROTEIN_MAXIMUM,
    MACRO_PROTEIN_MINIMUM,
    PROTEIN_IN_RANGE,
    PROTEIN_MAXIMUM,
    PROTEIN_MINIMUM,
    REST_DAYS_IN_RANGE,
    REST_DAYS_MAXIMUM,
    REST_DAYS_MINIMUM,
    SESSION_TIME_MATCH,
    SESSIONS_IN_RANGE,
    SESSIONS_MAXIMUM,
    SESSIONS_MINIMUM,
    TRAINING_DAYS_MATCH,
    auto_fix_plan,
    build_validation_section,
    is_plan_valid,
    validate_plan,
)
from fitplan.models.plan_models import (
    WEEK_DAYS,
    DailyNutrition,
    DietType,
    EquipmentType,
    Exercise,
    GeneratedBy,
    GoalType,
    MacroTargets,
    NutritionSection,
    PlanMetadata,
    Severity,
    TrainingSection,
    UserPreferences,
    ValidationCheck,
    ValidationRules,
    WeeklyPlan,
    WorkoutDay,
)


def make_preferences(**overrides):
    values = dict(
        goal=GoalType.FAT_LOSS,
        days_per_week=4,
        session_time=45,
        equipment=EquipmentType.GYM,
        diet_type=DietType.OMNIVORE,
        meals_per_day=4,
    )
    values.update(overrides)
    return UserPreferences(**values)


def workout(day, sets=3, muscles=("quads",), duration=45, reps="10", rest=60):
    return WorkoutDay(day=day, name="Workout", duration=duration, focus="full", exercises=[
        Exercise(name="Squat", sets=sets, reps=reps, rest=rest, muscle_groups=list(muscles)),
    ])


def week(training_days=("Mon", "Tue", "Thu", "Sat"), **workout_kwargs):
    return [
        workout(day, **workout_kwargs) if day in training_days else WorkoutDay(day=day, name="Rest", focus="rest")
        for day in WEEK_DAYS
    ]


def make_plan(daily_calories=1800, macros=None, structure=None, menu=None, preferences=None):
    return WeeklyPlan(
        id="plan-test",
        user_id="user-1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        preferences=preferences or make_preferences(),
        training=TrainingSection(weekly_structure=week() if structure is None else structure),
        nutrition=NutritionSection(
            daily_calories=daily_calories,
            macro_targets=macros or macro_targets_from_split(daily_calories, 30, 40, 30),
            weekly_menu=menu or [],
        ),
        metadata=PlanMetadata(generated_by=GeneratedBy.TEMPLATE),
    )


def by_name(checks):
    return {check.name: check for check in checks}


# ---------------------------
# Nutrition
# ---------------------------

def test_calories_below_minimum_is_error():
    check = by_name(validate_plan(make_plan(daily_calories=1000)))[CALORIES_MINIMUM]
    assert not check.passed
    assert check.severity == Severity.ERROR


def test_calories_above_maximum_is_warning():
    checks = by_name(validate_plan(make_plan(daily_calories=4500)))
    assert checks[CALORIES_MAXIMUM].severity == Severity.WARNING
    assert CALORIES_MINIMUM not in checks


def test_calories_in_range_is_info():
    check = by_name(validate_plan(make_plan()))[CALORIES_IN_RANGE]
    assert check.passed
    assert check.severity == Severity.INFO


def test_protein_rules_need_weight():
    names = by_name(validate_plan(make_plan()))
    assert PROTEIN_MINIMUM not in names
    assert PROTEIN_IN_RANGE not in names


@pytest.mark.parametrize("protein, name, severity", [
    (100, PROTEIN_MINIMUM, Severity.ERROR),
    (250, PROTEIN_MAXIMUM, Severity.WARNING),
    (160, PROTEIN_IN_RANGE, Severity.INFO),
])
def test_protein_per_kg(protein, name, severity):
    plan = make_plan(macros=MacroTargets(protein=protein, carbs=200, fat=60))
    checks = by_name(validate_plan(plan, user_weight=80))
    assert checks[name].severity == severity


def test_low_protein_share_is_error():
    plan = make_plan(macros=MacroTargets(protein=50, carbs=300, fat=80))
    check = by_name(validate_plan(plan))[MACRO_PROTEIN_MINIMUM]
    assert check.severity == Severity.ERROR


def test_high_protein_share_is_warning():
    plan = make_plan(macros=MacroTargets(protein=250, carbs=150, fat=50))
    check = by_name(validate_plan(plan))[MACRO_PROTEIN_MAXIMUM]
    assert check.severity == Severity.WARNING


def test_low_fat_share_is_error():
    plan = make_plan(macros=MacroTargets(protein=150, carbs=300, fat=20))
    checks = by_name(validate_plan(plan))
    assert checks[MACRO_FAT_MINIMUM].severity == Severity.ERROR
    assert MACRO_CARBS_MINIMUM not in checks


def test_low_carbs_share_is_warning():
    plan = make_plan(macros=MacroTargets(protein=150, carbs=50, fat=100))
    check = by_name(validate_plan(plan))[MACRO_CARBS_MINIMUM]
    assert check.severity == Severity.WARNING


def test_menu_far_from_target_is_warning():
    menu = [DailyNutrition(day=day, total_calories=1500) for day in WEEK_DAYS]
    check = by_name(validate_plan(make_plan(menu=menu)))[CALORIE_CONSISTENCY]
    assert check.severity == Severity.WARNING

    close_menu = [DailyNutrition(day=day, total_calories=1700) for day in WEEK_DAYS]
    assert CALORIE_CONSISTENCY not in by_name(validate_plan(make_plan(menu=close_menu)))


# ---------------------------
# Training
# ---------------------------

def test_too_few_sessions():
    plan = make_plan(structure=week(training_days=("Mon",)))
    checks = by_name(validate_plan(plan))
    assert checks[SESSIONS_MINIMUM].severity == Severity.ERROR
    assert checks[REST_DAYS_MAXIMUM].severity == Severity.WARNING
    assert checks[TRAINING_DAYS_MATCH].severity == Severity.ERROR


def test_no_rest_day():
    plan = make_plan(structure=week(training_days=tuple(WEEK_DAYS)))
    checks = by_name(validate_plan(plan))
    assert checks[SESSIONS_MAXIMUM].severity == Severity.WARNING
    assert checks[REST_DAYS_MINIMUM].severity == Severity.ERROR


def test_sessions_and_rest_in_range():
    checks = by_name(validate_plan(make_plan()))
    assert checks[SESSIONS_IN_RANGE].passed
    assert checks[REST_DAYS_IN_RANGE].passed
    assert TRAINING_DAYS_MATCH not in checks


def test_volume_bounds():
    low = by_name(validate_plan(make_plan(structure=week(sets=1))))
    assert low["volume_minimum_quads"].severity == Severity.WARNING

    high = by_name(validate_plan(make_plan(structure=week(sets=7))))
    assert high["volume_maximum_quads"].severity == Severity.ERROR

    ok = by_name(validate_plan(make_plan()))
    assert ok["volume_in_range_quads"].passed


def test_long_session_is_warning():
    structure = week()
    structure[0] = workout("Mon", duration=150)
    check = by_name(validate_plan(make_plan(structure=structure)))["session_duration_Mon"]
    assert check.severity == Severity.WARNING


def test_time_coherence():
    # 3 sets * (10 s + 60 s) = 3.5 minutes against a 45 minute slot
    checks = by_name(validate_plan(make_plan()))
    assert checks["time_coherence_Mon"].severity == Severity.WARNING

    # 10 sets * (120 s + 150 s) = 45 minutes
    coherent = make_plan(structure=week(sets=10, reps="120", rest=150, muscles=("quads",)))
    assert "time_coherence_Mon" not in by_name(validate_plan(coherent))


def test_session_time_match_uses_effective_preferences():
    plan = make_plan()
    assert SESSION_TIME_MATCH not in by_name(validate_plan(plan))

    shorter = make_preferences(session_time=30)
    check = by_name(validate_plan(plan, preferences=shorter))[SESSION_TIME_MATCH]
    assert check.severity == Severity.WARNING


# ---------------------------
# Verdict and auto-fix
# ---------------------------

def test_is_plan_valid_only_fails_on_errors():
    warning = ValidationCheck(name="w", passed=False, message="", severity=Severity.WARNING)
    info = ValidationCheck(name="i", passed=False, message="", severity=Severity.INFO)
    error = ValidationCheck(name="e", passed=False, message="", severity=Severity.ERROR)
    passed_error = ValidationCheck(name="p", passed=True, message="", severity=Severity.ERROR)

    assert is_plan_valid([])
    assert is_plan_valid([warning, warning, info, passed_error])
    assert not is_plan_valid([warning, error])


def test_build_validation_section():
    checks = validate_plan(make_plan(daily_calories=1000, structure=week(training_days=("Mon",))))
    section = build_validation_section(checks)
    assert not section.passed
    assert len(section.errors) == 3
    assert section.warnings
    assert section.checks == checks


def test_calorie_floor_fix_end_to_end():
    rules = ValidationRules(min_calories=1200)
    plan = make_plan(daily_calories=1000)

    first = validate_plan(plan, rules)
    assert not by_name(first)[CALORIES_MINIMUM].passed

    fixed = auto_fix_plan(plan, first, rules)
    second = validate_plan(fixed, rules)
    assert CALORIES_MINIMUM not in by_name(second)
    assert fixed.nutrition.daily_calories == 1200
    assert is_plan_valid(second)

    # the input plan is left untouched
    assert plan.nutrition.daily_calories == 1000


def test_calorie_floor_fix_is_idempotent():
    rules = ValidationRules(min_calories=1200)
    plan = make_plan(daily_calories=1000)
    checks = validate_plan(plan, rules)

    once = auto_fix_plan(plan, checks, rules)
    twice = auto_fix_plan(once, checks, rules)
    assert once.nutrition.daily_calories == twice.nutrition.daily_calories == 1200


def test_protein_floor_fix():
    plan = make_plan(
        macros=MacroTargets(protein=100, carbs=200, fat=60),
        preferences=make_preferences(weight=100),
    )
    checks = validate_plan(plan, user_weight=100)
    fixed = auto_fix_plan(plan, checks)
    assert fixed.nutrition.macro_targets.protein == pytest.approx(160)
    assert PROTEIN_MINIMUM not in by_name(validate_plan(fixed, user_weight=100))


def test_structural_errors_have_no_fix():
    plan = make_plan(structure=week(training_days=("Mon",)))
    checks = validate_plan(plan)
    fixed = auto_fix_plan(plan, checks)
    assert fixed.training == plan.training
    assert not is_plan_valid(validate_plan(fixed))
