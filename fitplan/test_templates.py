# test_templates.py

from fitplan.models.plan_models import (
    DietType,
    EquipmentType,
    ExperienceLevel,
    GoalType,
    UserPreferences,
)
from fitplan.templates.fallback import build_fallback_week, training_day_indexes
from fitplan.templates.nutrition_templates import NUTRITION_TEMPLATES, find_matching_nutrition_template
from fitplan.templates.training_templates import TRAINING_TEMPLATES, find_matching_training_template


def test_training_template_exact_match():
    template = find_matching_training_template(GoalType.FAT_LOSS, 4, 45, EquipmentType.GYM)
    assert template is not None
    assert template.id == "fat-loss-beginner-4-gym"


def test_training_template_near_miss_returns_none():
    """A single differing field never falls back to the closest template."""
    assert find_matching_training_template(GoalType.FAT_LOSS, 4, 40, EquipmentType.GYM) is None
    assert find_matching_training_template(GoalType.FAT_LOSS, 5, 45, EquipmentType.GYM) is None
    assert find_matching_training_template(GoalType.FAT_LOSS, 4, 45, EquipmentType.BASIC) is None
    assert find_matching_training_template(GoalType.MAINTENANCE, 4, 45, EquipmentType.GYM) is None


def test_training_template_respects_level():
    assert find_matching_training_template(
        GoalType.MUSCLE_GAIN, 5, 60, EquipmentType.GYM, ExperienceLevel.BEGINNER
    ) is None
    template = find_matching_training_template(
        GoalType.MUSCLE_GAIN, 5, 60, EquipmentType.GYM, ExperienceLevel.INTERMEDIATE
    )
    assert template.id == "muscle-gain-intermediate-5-gym"


def test_every_training_template_has_a_full_week():
    for template in TRAINING_TEMPLATES:
        assert [day.day for day in template.weekly_structure] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        training_days = [day for day in template.weekly_structure if not day.is_rest]
        assert len(training_days) == template.days_per_week


def test_nutrition_template_match_and_allergens():
    template = find_matching_nutrition_template(GoalType.MUSCLE_GAIN, DietType.OMNIVORE, 5)
    assert template.id == "muscle-gain-omnivore-5"
    assert find_matching_nutrition_template(GoalType.MUSCLE_GAIN, DietType.OMNIVORE, 5, ["Gluten"]) is None
    assert find_matching_nutrition_template(GoalType.FAT_LOSS, DietType.VEGETARIAN, 4, ["nuts"]) is None
    assert find_matching_nutrition_template(GoalType.FAT_LOSS, DietType.OMNIVORE, 3) is None


def test_nutrition_templates_add_up():
    for template in NUTRITION_TEMPLATES:
        assert len(template.weekly_menu) == 7
        for day in template.weekly_menu:
            assert len(day.meals) == template.meals_per_day
            assert day.total_calories == day.meal_calories


def test_training_day_indexes():
    assert training_day_indexes(4) == [0, 1, 3, 5]
    assert training_day_indexes(3) == [0, 2, 4]
    assert len(set(training_day_indexes(6))) == 6


def test_fallback_week():
    preferences = UserPreferences(
        goal=GoalType.MAINTENANCE,
        days_per_week=4,
        session_time=40,
        equipment=EquipmentType.BASIC,
        diet_type=DietType.OMNIVORE,
        meals_per_day=3,
    )
    week = build_fallback_week(preferences)

    assert len(week) == 7
    workouts = [day for day in week if not day.is_rest]
    assert [day.day for day in workouts] == ["Mon", "Tue", "Thu", "Sat"]
    assert [day.focus for day in workouts] == ["upper", "lower", "full", "cardio"]
    for day in workouts:
        assert day.duration == 40
        names = [exercise.name for exercise in day.exercises]
        assert names[0] == "Warm-up"
        assert names[-1] == "Cool-down stretch"
        assert len(names) == 3
    assert workouts[0].exercises[1].name == "Dumbbell bench press"
    assert all(not day.exercises for day in week if day.is_rest)


def test_full_gym_alias():
    preferences = UserPreferences(
        goal="fat-loss",
        daysPerWeek=4,
        sessionTime=45,
        equipment="full-gym",
        dietType="omnivore",
        mealsPerDay=4,
    )
    assert preferences.equipment == EquipmentType.GYM
