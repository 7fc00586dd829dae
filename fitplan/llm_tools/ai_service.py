import json
import logging
import re
from typing import Any, Dict, List, Optional

import openai
from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from fitplan.config import AIServiceConfig
from fitplan.errors import AIServiceError, ConfigurationError, ResponseFormatError
from fitplan.models.plan_models import (
    AIPlanFragment,
    DailyNutrition,
    RegenerationConstraints,
    UserPreferences,
    ValidationRules,
    WeeklyPlan,
    WorkoutDay,
)

logger = logging.getLogger(__name__)


# Wrapper for OpenRouter: any OpenAI-compatible endpoint works through base_url
class ChatOpenRouter(ChatOpenAI):
    def __init__(self, config: AIServiceConfig, **kwargs):
        super().__init__(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            **kwargs
        )


GOAL_DESCRIPTIONS = {
    "fat-loss": "fat loss (moderate calorie deficit)",
    "muscle-gain": "muscle gain (calorie surplus)",
    "maintenance": "maintain current weight",
    "performance": "improve athletic performance",
}

EQUIPMENT_DESCRIPTIONS = {
    "none": "no equipment (bodyweight only)",
    "basic": "basic equipment (dumbbells, resistance bands)",
    "gym": "full gym (barbells, machines, free weights)",
}

DIET_DESCRIPTIONS = {
    "omnivore": "omnivore (meat, fish, eggs, dairy)",
    "vegetarian": "vegetarian (no meat or fish, eggs and dairy allowed)",
    "pescatarian": "pescatarian (no meat, fish, eggs and dairy allowed)",
    "keto": "ketogenic (very low carbohydrate, high fat)",
}

STYLE_DESCRIPTIONS = {
    "simple": "quick and simple (short routines, easy meals)",
    "strict": "strict (detailed tracking)",
}


GENERATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are an evidence-based fitness and nutrition expert.
You always answer with valid, structured JSON.
"""),
    ("human", """Create a complete weekly training and nutrition plan for this user.

## USER PROFILE
- Goal: {goal}
- Training days per week: {days_per_week}
- Time per session: {session_time} minutes
- Equipment: {equipment}
- Diet: {diet}
- Allergies/intolerances: {allergies}
- Meals per day: {meals_per_day}
- Style: {style}
{base_template}
## TRAINING
- List Monday to Sunday: exactly {days_per_week} training days, the other days with focus "rest"
- Each session lasts about {session_time} minutes
- Every exercise has name, sets, reps, rest (seconds) and muscleGroups
- Spread the volume evenly across muscle groups

## NUTRITION
- A menu for all 7 days with {meals_per_day} meals per day
- Calories, protein, carbs and fat for every meal, plus the daily totals
- Description and ingredient list for every meal, preparation steps where useful
- Leave out every food the user is allergic to and respect the diet type

## SAFETY LIMITS
{safety_rules}

## RESPONSE FORMAT
Answer ONLY with a JSON object with the keys "training" (weeklyStructure, progression),
"nutrition" (weeklyMenu, mealPrepTips) and "reasoning". No text before or after the JSON.
{format_instructions}
"""),
])

REGENERATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are a fitness and nutrition expert.
You adjust existing plans to the user's specific constraints and always answer with valid JSON.
"""),
    ("human", """REGENERATE and ADJUST an existing plan applying the user's additional constraints.

## CURRENT PLAN
- Goal: {goal}
- Training days: {days_per_week}
- Time per session: {session_time} minutes
- Diet: {diet}
- Allergies: {allergies}

## ADDITIONAL CONSTRAINTS
{constraints}

## INSTRUCTIONS
1. KEEP the overall structure of the plan (goal, days, diet type)
2. CHANGE only what the constraints require
3. KEEP training and nutrition coherent
4. If a constraint conflicts with the goal, put the user's safety first

## SAFETY LIMITS
{safety_rules}

## RESPONSE FORMAT
Answer ONLY with a JSON object in the same format as the original plan, with the keys
"training" (weeklyStructure, progression), "nutrition" (weeklyMenu, mealPrepTips) and
"reasoning" (what changed and why).
{format_instructions}
"""),
])


def describe_safety_rules(rules: ValidationRules) -> str:
    balance = rules.macro_balance
    return "\n".join([
        f"- Protein at least {rules.min_protein_per_kg} g/kg of body weight (assume 70 kg if unknown)",
        f"- Never below {rules.min_calories} kcal/day",
        f"- Macro split: protein {balance.min_protein_percent:g}-{balance.max_protein_percent:g}%, "
        f"carbs {balance.min_carbs_percent:g}-{balance.max_carbs_percent:g}%, "
        f"fat {balance.min_fat_percent:g}-{balance.max_fat_percent:g}%",
        f"- {rules.min_volume_per_muscle_group}-{rules.max_volume_per_muscle_group} sets per muscle group per week",
        f"- {rules.rest_days_per_week.min}-{rules.rest_days_per_week.max} rest days per week",
    ])


def build_constraint_lines(constraints: RegenerationConstraints) -> List[str]:
    """One bullet per constraint that is actually set."""
    lines = []
    if constraints.exclude_foods:
        lines.append(f"- EXCLUDE foods: {', '.join(constraints.exclude_foods)}")
    if constraints.max_calories:
        lines.append(f"- Maximum daily calories: {constraints.max_calories} kcal")
    if constraints.min_protein:
        lines.append(f"- Minimum protein: {constraints.min_protein} g/kg of body weight")
    if constraints.max_carbs:
        lines.append(f"- Maximum carbohydrates: {constraints.max_carbs} g/day")
    if constraints.cooking_methods:
        lines.append(f"- Preferred cooking methods: {', '.join(constraints.cooking_methods)}")
    if constraints.max_session_time:
        lines.append(f"- Maximum time per session: {constraints.max_session_time} minutes")
    if constraints.preferred_exercises:
        lines.append(f"- Preferred exercises: {', '.join(constraints.preferred_exercises)}")
    if constraints.avoid_exercises:
        lines.append(f"- Avoid exercises: {', '.join(constraints.avoid_exercises)}")
    if constraints.focus_areas:
        lines.append(f"- Focus areas: {', '.join(constraints.focus_areas)}")
    if constraints.notes:
        lines.append(f"- Additional notes: {constraints.notes}")
    return lines


_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_payload(content: str) -> str:
    """Pull the JSON out of a reply that may be wrapped in a fenced code block or prose."""
    content = content.strip()
    fenced = _FENCED_JSON.search(content)
    if fenced:
        return fenced.group(1)
    braces = _JSON_OBJECT.search(content)
    if braces:
        return braces.group(0)
    return content


def safe_parse(parser: PydanticOutputParser, raw_response: Any, plan_type: str) -> AIPlanFragment:
    """Parse a chat reply into the plan fragment model. No retries."""
    content = getattr(raw_response, "content", raw_response)
    if not isinstance(content, str) or not content.strip():
        raise ResponseFormatError(f"The AI service returned no content for the {plan_type}")

    try:
        return parser.parse(extract_json_payload(content))
    except OutputParserException as exc:
        raise ResponseFormatError(f"Invalid {plan_type} JSON: {exc}", content=content) from exc


def _upstream_message(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return exc.message


class AIPlanService:
    """Builds prompts, calls the chat model and parses the returned plan fragment."""

    def __init__(
        self,
        config: AIServiceConfig,
        llm: Optional[Any] = None,
        rules: Optional[ValidationRules] = None,
    ):
        if not config.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set. Add it to your .env file.")
        self.config = config
        self.rules = rules or ValidationRules()
        self.llm = llm or ChatOpenRouter(config).bind(response_format={"type": "json_object"})
        self.parser = PydanticOutputParser(pydantic_object=AIPlanFragment)

    @property
    def model_name(self) -> str:
        return self.config.model

    def generate(
        self,
        preferences: UserPreferences,
        base_template: Optional[Dict[str, Optional[list]]] = None,
    ) -> AIPlanFragment:
        """Ask for a full week. ``base_template`` may hold template "training" days and "nutrition" menu."""
        variables = {
            "goal": GOAL_DESCRIPTIONS[preferences.goal.value],
            "days_per_week": preferences.days_per_week,
            "session_time": preferences.session_time,
            "equipment": EQUIPMENT_DESCRIPTIONS[preferences.equipment.value],
            "diet": DIET_DESCRIPTIONS[preferences.diet_type.value],
            "allergies": ", ".join(preferences.allergies) if preferences.allergies else "none",
            "meals_per_day": preferences.meals_per_day,
            "style": STYLE_DESCRIPTIONS[preferences.style.value],
            "base_template": self._describe_base_template(base_template),
            "safety_rules": describe_safety_rules(self.rules),
            "format_instructions": self.parser.get_format_instructions(),
        }
        return self._complete(GENERATION_PROMPT, variables, "plan")

    def regenerate(self, existing_plan: WeeklyPlan, constraints: RegenerationConstraints) -> AIPlanFragment:
        preferences = existing_plan.preferences
        logger.info(
            "Regenerating plan %s (user %s, week %s, version %s)",
            existing_plan.id, existing_plan.user_id, existing_plan.week_number, existing_plan.version,
        )
        lines = build_constraint_lines(constraints)
        variables = {
            "goal": preferences.goal.value,
            "days_per_week": preferences.days_per_week,
            "session_time": preferences.session_time,
            "diet": preferences.diet_type.value,
            "allergies": ", ".join(preferences.allergies) or "none",
            "constraints": "\n".join(lines) if lines else "- No extra constraints: refresh the plan with new variations",
            "safety_rules": describe_safety_rules(self.rules),
            "format_instructions": self.parser.get_format_instructions(),
        }
        return self._complete(REGENERATION_PROMPT, variables, "regenerated plan")

    def _describe_base_template(self, base_template: Optional[Dict[str, Optional[list]]]) -> str:
        if not base_template:
            return ""
        training: Optional[List[WorkoutDay]] = base_template.get("training")
        nutrition: Optional[List[DailyNutrition]] = base_template.get("nutrition")
        parts = []
        if training:
            parts.append("Training: " + json.dumps(
                [day.model_dump(mode="json", by_alias=True) for day in training], ensure_ascii=False
            ))
        if nutrition:
            parts.append("Nutrition: " + json.dumps(
                [day.model_dump(mode="json", by_alias=True) for day in nutrition], ensure_ascii=False
            ))
        if not parts:
            return ""
        return (
            "\n## BASE TEMPLATE\n"
            "Use this as a reference and adapt it to the user where needed.\n"
            + "\n".join(parts)
            + "\n"
        )

    def _complete(self, prompt: ChatPromptTemplate, variables: Dict[str, Any], plan_type: str) -> AIPlanFragment:
        logger.info("Requesting %s from %s", plan_type, self.model_name)
        try:
            raw_response = (prompt | self.llm).invoke(variables)
        except openai.APIStatusError as exc:
            raise AIServiceError(_upstream_message(exc), status_code=exc.status_code) from exc
        except openai.APIError as exc:
            # connection failures and timeouts carry no status
            raise AIServiceError(str(exc)) from exc

        fragment = safe_parse(self.parser, raw_response, plan_type)
        logger.info(
            "Parsed %s: training=%s nutrition=%s",
            plan_type, fragment.has_training, fragment.has_nutrition,
        )
        return fragment
