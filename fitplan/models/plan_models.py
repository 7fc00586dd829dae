import re
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


WEEK_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

Gender = Literal["male", "female"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very-active"]


class CamelModel(BaseModel):
    """Python names in code, camelCase keys in JSON (plan blobs and AI responses)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def leading_number(value) -> Optional[float]:
    """Read numbers the way the AI writes them: 45, "45", "45 min", "3-4" (-> 3). None if unreadable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if value >= 0 else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match:
            return float(match.group(1))
    return None


def _number_or_default(cls, value, info: ValidationInfo, cast=float):
    number = leading_number(value)
    if number is None:
        return cls.model_fields[info.field_name].default
    return cast(number)


# ---------------------------
# 🎯 Enums
# ---------------------------

class GoalType(str, Enum):
    FAT_LOSS = "fat-loss"
    MUSCLE_GAIN = "muscle-gain"
    MAINTENANCE = "maintenance"
    PERFORMANCE = "performance"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class EquipmentType(str, Enum):
    NONE = "none"
    BASIC = "basic"
    GYM = "gym"


class DietType(str, Enum):
    OMNIVORE = "omnivore"
    VEGETARIAN = "vegetarian"
    PESCATARIAN = "pescatarian"
    KETO = "keto"


class PlanStyle(str, Enum):
    SIMPLE = "simple"
    STRICT = "strict"


class DayFocus(str, Enum):
    UPPER = "upper"
    LOWER = "lower"
    FULL = "full"
    CARDIO = "cardio"
    REST = "rest"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class GeneratedBy(str, Enum):
    TEMPLATE = "template"
    AI = "ai"
    HYBRID = "hybrid"


# ---------------------------
# 👤 User input
# ---------------------------

class UserPreferences(CamelModel):
    """Onboarding answers. Never mutated once a generation run starts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    goal: GoalType
    days_per_week: int = Field(ge=3, le=6)
    session_time: int = Field(gt=0, description="Minutes per session.")
    equipment: EquipmentType
    diet_type: DietType
    allergies: List[str] = Field(default_factory=list)
    meals_per_day: int = Field(ge=3, le=5)
    style: PlanStyle = PlanStyle.SIMPLE
    level: ExperienceLevel = ExperienceLevel.BEGINNER

    # optional biometrics, used for the calorie target
    weight: Optional[float] = Field(default=None, description="Body weight in kg.")
    height: Optional[float] = Field(default=None, description="Height in cm.")
    age: Optional[int] = None
    gender: Optional[Gender] = None
    activity_level: Optional[ActivityLevel] = None

    @field_validator("equipment", mode="before")
    @classmethod
    def _full_gym_alias(cls, value):
        if value == "full-gym":
            return EquipmentType.GYM
        return value


class RegenerationConstraints(CamelModel):
    """Overrides applied on top of a plan's preferences for a single regeneration."""

    # nutrition
    exclude_foods: Optional[List[str]] = None
    max_calories: Optional[int] = None
    min_protein: Optional[float] = Field(default=None, description="Protein floor in g per kg of body weight.")
    max_carbs: Optional[float] = Field(default=None, description="Carbohydrate cap in g per day.")
    cooking_methods: Optional[List[str]] = None

    # training
    max_session_time: Optional[int] = None
    preferred_exercises: Optional[List[str]] = None
    avoid_exercises: Optional[List[str]] = None
    focus_areas: Optional[List[str]] = None

    notes: Optional[str] = None


# ---------------------------
# 🏋️ Workout Models
# ---------------------------

class Exercise(CamelModel):
    name: str = Field(description="Exercise name.")
    sets: int = Field(default=0, ge=0, description="Number of working sets.")
    reps: str = Field(default="", description='Rep range such as "8-12" or a duration such as "30s".')
    rest: int = Field(default=60, ge=0, description="Rest between sets in seconds.")
    muscle_groups: List[str] = Field(
        default_factory=list,
        description="Muscle groups trained, for example chest or quads.",
    )
    equipment: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("reps", mode="before")
    @classmethod
    def _reps_as_text(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("sets", "rest", mode="before")
    @classmethod
    def _count_from_text(cls, value, info: ValidationInfo):
        return _number_or_default(cls, value, info, int)

    @field_validator("muscle_groups", mode="before")
    @classmethod
    def _muscle_groups_as_list(cls, value):
        # malformed AI output: anything that is not a list counts as "no groups"
        if not isinstance(value, list):
            return []
        return [str(muscle) for muscle in value if muscle]


class WorkoutDay(CamelModel):
    day: str = Field(description='Day label, for example "Mon".')
    name: str = Field(default="", description="Session name.")
    duration: int = Field(default=0, ge=0, description="Planned duration in minutes.")
    focus: str = Field(default=DayFocus.FULL.value, description="One of upper, lower, full, cardio, rest.")
    intensity: str = Field(default="medium", description="One of low, medium, high.")
    exercises: List[Exercise] = Field(default_factory=list, description="Ordered exercises, empty on rest days.")

    @field_validator("focus", "intensity", mode="before")
    @classmethod
    def _lower_label(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _minutes_from_text(cls, value, info: ValidationInfo):
        return _number_or_default(cls, value, info, int)

    @field_validator("exercises", mode="before")
    @classmethod
    def _drop_malformed_exercises(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, Exercise))]

    @property
    def is_rest(self) -> bool:
        return self.focus == DayFocus.REST.value


class WeekProgression(CamelModel):
    week1: str
    week2: str
    week3: str
    week4: str

    def for_week(self, week_number: int) -> str:
        index = (max(week_number, 1) - 1) % 4 + 1
        return getattr(self, f"week{index}")


class TrainingTemplate(CamelModel):
    id: str
    goal: GoalType
    level: ExperienceLevel
    days_per_week: int
    session_time: int
    equipment: EquipmentType
    weekly_structure: List[WorkoutDay]
    progression: WeekProgression


# ---------------------------
# 🍽️ Diet Models
# ---------------------------

class Recipe(CamelModel):
    instructions: List[str] = Field(default_factory=list)
    prep_time: int = Field(default=0, description="Minutes.")
    cook_time: int = Field(default=0, description="Minutes.")


class Meal(CamelModel):
    name: str = Field(description="Meal slot, for example breakfast or lunch.")
    calories: float = 0
    protein: float = Field(default=0, description="Grams.")
    carbs: float = Field(default=0, description="Grams.")
    fat: float = Field(default=0, description="Grams.")
    description: str = ""
    ingredients: List[str] = Field(default_factory=list)
    recipe: Optional[Recipe] = None
    substitutions: Optional[List[str]] = None

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _amount_from_text(cls, value, info: ValidationInfo):
        return _number_or_default(cls, value, info)


# day total field -> the meal field it sums
_DAY_TOTALS = {
    "total_calories": "calories",
    "protein": "protein",
    "carbs": "carbs",
    "fat": "fat",
}


class DailyNutrition(CamelModel):
    """One day of the menu. Totals the AI leaves out are summed from the meals."""

    day: str = Field(description='Day label, for example "Mon".')
    total_calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    meals: List[Meal] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_unreadable_totals(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in _DAY_TOTALS:
            for key in (name, to_camel(name)):
                if key in data and leading_number(data[key]) is None:
                    del data[key]
                elif key in data:
                    data[key] = leading_number(data[key])
        return data

    @model_validator(mode="after")
    def _fill_totals_from_meals(self):
        if not self.meals:
            return self
        for name, meal_field in _DAY_TOTALS.items():
            if name not in self.model_fields_set:
                setattr(self, name, sum(getattr(meal, meal_field) for meal in self.meals))
        return self

    @field_validator("meals", mode="before")
    @classmethod
    def _meals_as_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, Meal))]

    @property
    def has_totals(self) -> bool:
        return self.total_calories > 0

    @property
    def meal_calories(self) -> float:
        return sum(meal.calories for meal in self.meals)


class MacroDistribution(CamelModel):
    """Percentages of daily calories."""

    protein: float
    carbs: float
    fat: float


class NutritionTemplate(CamelModel):
    id: str
    goal: GoalType
    diet_type: DietType
    meals_per_day: int
    daily_calories: int
    macro_distribution: MacroDistribution
    weekly_menu: List[DailyNutrition]
    excluded_allergens: List[str] = Field(default_factory=list)


# ---------------------------
# ✅ Validation
# ---------------------------

class ValidationCheck(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    passed: bool
    message: str
    severity: Severity


class MacroBalance(CamelModel):
    min_protein_percent: float = 20
    max_protein_percent: float = 40
    min_carbs_percent: float = 25
    max_carbs_percent: float = 60
    min_fat_percent: float = 20
    max_fat_percent: float = 40


class RestDayBounds(CamelModel):
    min: int = 1
    max: int = 3


class ValidationRules(CamelModel):
    """Thresholds used by the validator. ``ValidationRules()`` is the default set."""

    # nutrition
    min_protein_per_kg: float = 1.6
    max_protein_per_kg: float = 2.5
    min_calories: int = 1200
    max_calories: int = 4000
    macro_balance: MacroBalance = Field(default_factory=MacroBalance)

    # training
    min_sessions_per_week: int = 2
    max_sessions_per_week: int = 6
    min_volume_per_muscle_group: int = 8
    max_volume_per_muscle_group: int = 25
    max_session_duration: int = 120
    rest_days_per_week: RestDayBounds = Field(default_factory=RestDayBounds)


# ---------------------------
# 📅 Weekly plan
# ---------------------------

class MacroTargets(CamelModel):
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class TrainingSection(CamelModel):
    weekly_structure: List[WorkoutDay] = Field(default_factory=list)
    total_volume: Dict[str, int] = Field(default_factory=dict)
    progression: str = ""


class NutritionSection(CamelModel):
    daily_calories: int
    macro_targets: MacroTargets = Field(default_factory=MacroTargets)
    weekly_menu: List[DailyNutrition] = Field(default_factory=list)
    meal_prep_tips: Optional[List[str]] = None


class ValidationSection(CamelModel):
    passed: bool = False
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    checks: List[ValidationCheck] = Field(default_factory=list)


class PlanMetadata(CamelModel):
    generated_by: GeneratedBy
    ai_model: Optional[str] = None
    template_ids: List[str] = Field(default_factory=list)
    generation_time: Optional[float] = Field(default=None, description="Milliseconds.")


class WeeklyPlan(CamelModel):
    id: str
    user_id: str
    week_number: int = 1
    created_at: datetime
    version: int = 1

    preferences: UserPreferences
    constraints: Optional[RegenerationConstraints] = None

    training: TrainingSection
    nutrition: NutritionSection
    validation: ValidationSection = Field(default_factory=ValidationSection)
    metadata: PlanMetadata


# ---------------------------
# 🤖 AI response
# ---------------------------

class AITrainingFragment(CamelModel):
    weekly_structure: List[WorkoutDay] = Field(
        default_factory=list,
        description="Seven days, Monday to Sunday, rest days included with focus rest.",
    )
    progression: str = Field(default="", description="How to progress week to week.")

    @field_validator("weekly_structure", mode="before")
    @classmethod
    def _days_as_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, WorkoutDay))]

    @field_validator("progression", mode="before")
    @classmethod
    def _progression_as_text(cls, value):
        if value is None:
            return ""
        if isinstance(value, dict):
            return "\n".join(str(step) for step in value.values())
        if isinstance(value, list):
            return "\n".join(str(step) for step in value)
        return value


class AINutritionFragment(CamelModel):
    weekly_menu: List[DailyNutrition] = Field(
        default_factory=list,
        description="Seven days of meals with per-day calorie and macro totals.",
    )
    meal_prep_tips: Optional[List[str]] = None

    @field_validator("weekly_menu", mode="before")
    @classmethod
    def _menu_as_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, DailyNutrition))]


class AIPlanFragment(CamelModel):
    """What the model sends back. Either section may be missing."""

    training: Optional[AITrainingFragment] = None
    nutrition: Optional[AINutritionFragment] = None
    reasoning: Optional[str] = Field(default=None, description="Short explanation of the choices made.")

    @property
    def has_training(self) -> bool:
        return self.training is not None and len(self.training.weekly_structure) > 0

    @property
    def has_nutrition(self) -> bool:
        return self.nutrition is not None and len(self.nutrition.weekly_menu) > 0
