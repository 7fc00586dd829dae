"""Safety and coherence rules for a generated plan, and the automatic fixes.

Every run produces fresh ValidationCheck objects. Checks are identified by
name; their order carries no meaning.
"""
import logging
from typing import List, Optional

from fitplan.logic.metrics import (
    calculate_muscle_group_volume,
    estimate_session_minutes,
    macro_calorie_percentages,
)
from fitplan.models.plan_models import (
    Severity,
    UserPreferences,
    ValidationCheck,
    ValidationRules,
    ValidationSection,
    WeeklyPlan,
)

logger = logging.getLogger(__name__)

DEFAULT_VALIDATION_RULES = ValidationRules()

CALORIES_MINIMUM = "calories_minimum"
CALORIES_MAXIMUM = "calories_maximum"
CALORIES_IN_RANGE = "calories_in_range"
PROTEIN_MINIMUM = "protein_minimum"
PROTEIN_MAXIMUM = "protein_maximum"
PROTEIN_IN_RANGE = "protein_in_range"
MACRO_PROTEIN_MINIMUM = "macro_protein_minimum"
MACRO_PROTEIN_MAXIMUM = "macro_protein_maximum"
MACRO_CARBS_MINIMUM = "macro_carbs_minimum"
MACRO_FAT_MINIMUM = "macro_fat_minimum"
CALORIE_CONSISTENCY = "calorie_consistency"
SESSIONS_MINIMUM = "sessions_minimum"
SESSIONS_MAXIMUM = "sessions_maximum"
SESSIONS_IN_RANGE = "sessions_in_range"
REST_DAYS_MINIMUM = "rest_days_minimum"
REST_DAYS_MAXIMUM = "rest_days_maximum"
REST_DAYS_IN_RANGE = "rest_days_in_range"
TRAINING_DAYS_MATCH = "training_days_match"
SESSION_TIME_MATCH = "session_time_match"

MENU_CALORIE_TOLERANCE = 200
SESSION_ESTIMATE_TOLERANCE = 15
SESSION_TIME_TOLERANCE = 10


def _fail(name: str, message: str, severity: Severity) -> ValidationCheck:
    return ValidationCheck(name=name, passed=False, message=message, severity=severity)


def _ok(name: str, message: str) -> ValidationCheck:
    return ValidationCheck(name=name, passed=True, message=message, severity=Severity.INFO)


# ---------------------------
# 🍽️ Nutrition rules
# ---------------------------

def validate_nutrition(
    plan: WeeklyPlan,
    rules: ValidationRules,
    user_weight: Optional[float] = None,
) -> List[ValidationCheck]:
    checks = []
    nutrition = plan.nutrition
    calories = nutrition.daily_calories

    if calories < rules.min_calories:
        checks.append(_fail(
            CALORIES_MINIMUM,
            f"Daily calories ({calories}) are below the recommended minimum ({rules.min_calories} kcal).",
            Severity.ERROR,
        ))
    elif calories > rules.max_calories:
        checks.append(_fail(
            CALORIES_MAXIMUM,
            f"Daily calories ({calories}) exceed the reasonable maximum ({rules.max_calories} kcal).",
            Severity.WARNING,
        ))
    else:
        checks.append(_ok(CALORIES_IN_RANGE, f"Daily calories ({calories} kcal) are within the safe range."))

    if user_weight:
        per_kg = nutrition.macro_targets.protein / user_weight
        if per_kg < rules.min_protein_per_kg:
            checks.append(_fail(
                PROTEIN_MINIMUM,
                f"Protein ({per_kg:.1f} g/kg) is below the recommended minimum ({rules.min_protein_per_kg} g/kg).",
                Severity.ERROR,
            ))
        elif per_kg > rules.max_protein_per_kg:
            checks.append(_fail(
                PROTEIN_MAXIMUM,
                f"Protein ({per_kg:.1f} g/kg) exceeds the recommended maximum ({rules.max_protein_per_kg} g/kg).",
                Severity.WARNING,
            ))
        else:
            checks.append(_ok(PROTEIN_IN_RANGE, f"Protein ({per_kg:.1f} g/kg) is within the optimal range."))

    # low protein and low fat are safety errors, high protein and low carbs are advice
    percentages = macro_calorie_percentages(nutrition.macro_targets)
    if percentages is not None:
        balance = rules.macro_balance
        if percentages["protein"] < balance.min_protein_percent:
            checks.append(_fail(
                MACRO_PROTEIN_MINIMUM,
                f"Protein provides only {percentages['protein']:.1f}% of calories. "
                f"Recommended minimum: {balance.min_protein_percent}%.",
                Severity.ERROR,
            ))
        elif percentages["protein"] > balance.max_protein_percent:
            checks.append(_fail(
                MACRO_PROTEIN_MAXIMUM,
                f"Protein provides {percentages['protein']:.1f}% of calories. "
                f"Recommended maximum: {balance.max_protein_percent}%.",
                Severity.WARNING,
            ))
        if percentages["carbs"] < balance.min_carbs_percent:
            checks.append(_fail(
                MACRO_CARBS_MINIMUM,
                f"Carbohydrates provide only {percentages['carbs']:.1f}% of calories. "
                f"Recommended minimum: {balance.min_carbs_percent}%.",
                Severity.WARNING,
            ))
        if percentages["fat"] < balance.min_fat_percent:
            checks.append(_fail(
                MACRO_FAT_MINIMUM,
                f"Fat provides only {percentages['fat']:.1f}% of calories. "
                f"Recommended minimum: {balance.min_fat_percent}%.",
                Severity.ERROR,
            ))

    if nutrition.weekly_menu:
        average = sum(day.total_calories for day in nutrition.weekly_menu) / len(nutrition.weekly_menu)
        difference = abs(average - calories)
        if difference > MENU_CALORIE_TOLERANCE:
            checks.append(_fail(
                CALORIE_CONSISTENCY,
                f"The weekly menu averages {average:.0f} kcal/day, {difference:.0f} kcal away from "
                f"the {calories} kcal target.",
                Severity.WARNING,
            ))

    return checks


# ---------------------------
# 🏋️ Training rules
# ---------------------------

def validate_training(
    plan: WeeklyPlan,
    rules: ValidationRules,
    preferences: UserPreferences,
) -> List[ValidationCheck]:
    checks = []
    structure = plan.training.weekly_structure

    training_days = len([day for day in structure if not day.is_rest])
    rest_days = len(structure) - training_days

    if training_days < rules.min_sessions_per_week:
        checks.append(_fail(
            SESSIONS_MINIMUM,
            f"Only {training_days} training days. Recommended minimum: {rules.min_sessions_per_week} per week.",
            Severity.ERROR,
        ))
    elif training_days > rules.max_sessions_per_week:
        checks.append(_fail(
            SESSIONS_MAXIMUM,
            f"{training_days} training days. Recommended maximum: {rules.max_sessions_per_week} per week.",
            Severity.WARNING,
        ))
    else:
        checks.append(_ok(SESSIONS_IN_RANGE, f"Number of sessions ({training_days}) is within the optimal range."))

    bounds = rules.rest_days_per_week
    if rest_days < bounds.min:
        checks.append(_fail(
            REST_DAYS_MINIMUM,
            f"Only {rest_days} rest day(s). At least {bounds.min} needed for recovery.",
            Severity.ERROR,
        ))
    elif rest_days > bounds.max:
        checks.append(_fail(
            REST_DAYS_MAXIMUM,
            f"{rest_days} rest days may be too many to reach the goal (maximum {bounds.max}).",
            Severity.WARNING,
        ))
    else:
        checks.append(_ok(REST_DAYS_IN_RANGE, f"Rest days ({rest_days}) are within the recommended range."))

    for muscle, sets in calculate_muscle_group_volume(structure).items():
        if sets < rules.min_volume_per_muscle_group:
            checks.append(_fail(
                f"volume_minimum_{muscle}",
                f'Muscle group "{muscle}" gets only {sets} sets/week. '
                f"Recommended minimum: {rules.min_volume_per_muscle_group}.",
                Severity.WARNING,
            ))
        elif sets > rules.max_volume_per_muscle_group:
            checks.append(_fail(
                f"volume_maximum_{muscle}",
                f'Muscle group "{muscle}" gets {sets} sets/week. '
                f"Recommended maximum: {rules.max_volume_per_muscle_group}.",
                Severity.ERROR,
            ))
        else:
            checks.append(_ok(f"volume_in_range_{muscle}", f'Muscle group "{muscle}" gets {sets} sets/week.'))

    for day in structure:
        if day.duration > rules.max_session_duration:
            checks.append(_fail(
                f"session_duration_{day.day}",
                f"The {day.day} session lasts {day.duration} minutes. "
                f"Recommended maximum: {rules.max_session_duration}.",
                Severity.WARNING,
            ))
        if not day.exercises:
            continue
        estimated = estimate_session_minutes(day.exercises)
        if abs(estimated - day.duration) > SESSION_ESTIMATE_TOLERANCE:
            checks.append(_fail(
                f"time_coherence_{day.day}",
                f"Estimated duration ({estimated:.0f} min) does not match the planned "
                f"{day.duration} min on {day.day}.",
                Severity.WARNING,
            ))

    if training_days != preferences.days_per_week:
        checks.append(_fail(
            TRAINING_DAYS_MATCH,
            f"The plan has {training_days} training days but {preferences.days_per_week} were requested.",
            Severity.ERROR,
        ))

    durations = [day.duration for day in structure if day.duration > 0]
    if durations:
        average = sum(durations) / len(durations)
        if abs(average - preferences.session_time) > SESSION_TIME_TOLERANCE:
            checks.append(_fail(
                SESSION_TIME_MATCH,
                f"Average session time ({average:.0f} min) does not match the requested "
                f"{preferences.session_time} min.",
                Severity.WARNING,
            ))

    return checks


# ---------------------------
# ✅ Whole plan
# ---------------------------

def validate_plan(
    plan: WeeklyPlan,
    rules: Optional[ValidationRules] = None,
    user_weight: Optional[float] = None,
    preferences: Optional[UserPreferences] = None,
) -> List[ValidationCheck]:
    """Run the nutrition and training rules.

    ``preferences`` defaults to the plan's own; regeneration passes the
    constraint-adjusted preferences instead.
    """
    rules = rules or DEFAULT_VALIDATION_RULES
    checks = validate_nutrition(plan, rules, user_weight)
    checks.extend(validate_training(plan, rules, preferences or plan.preferences))
    return checks


def is_plan_valid(checks: List[ValidationCheck]) -> bool:
    """True unless some error-severity check failed."""
    return not any(check.severity == Severity.ERROR and not check.passed for check in checks)


def build_validation_section(checks: List[ValidationCheck]) -> ValidationSection:
    return ValidationSection(
        passed=is_plan_valid(checks),
        errors=[c.message for c in checks if c.severity == Severity.ERROR and not c.passed],
        warnings=[c.message for c in checks if c.severity == Severity.WARNING and not c.passed],
        checks=list(checks),
    )


def auto_fix_plan(
    plan: WeeklyPlan,
    checks: List[ValidationCheck],
    rules: Optional[ValidationRules] = None,
) -> WeeklyPlan:
    """Return a corrected copy of ``plan``.

    Only the calorie floor and the protein floor have a correction. Any other
    failed error check is left as is and shows up again on re-validation.
    """
    rules = rules or DEFAULT_VALIDATION_RULES
    fixed = plan.model_copy(deep=True)

    for check in checks:
        if check.severity != Severity.ERROR or check.passed:
            continue
        if check.name == CALORIES_MINIMUM:
            fixed.nutrition.daily_calories = max(fixed.nutrition.daily_calories, rules.min_calories)
            logger.info("Raised daily calories of plan %s to %s", fixed.id, fixed.nutrition.daily_calories)
        elif check.name == PROTEIN_MINIMUM and plan.preferences.weight:
            floor = plan.preferences.weight * rules.min_protein_per_kg
            fixed.nutrition.macro_targets.protein = max(fixed.nutrition.macro_targets.protein, floor)
            logger.info("Raised protein target of plan %s to %.1f g", fixed.id, fixed.nutrition.macro_targets.protein)
        else:
            logger.info("No automatic fix for %s on plan %s", check.name, fixed.id)

    return fixed
