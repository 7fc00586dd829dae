"""Hybrid plan generation: templates first, AI when needed, then validate and auto-fix.

Both operations run as a LangGraph state graph. Each node is one stage of the
pipeline and returns the state keys it changed.
"""
import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from fitplan.config import load_ai_config
from fitplan.errors import AIServiceError, ConfigurationError, GenerationCancelled, ResponseFormatError
from fitplan.logic.events import PipelineEvents
from fitplan.logic.metrics import (
    DEFAULT_MACRO_SPLIT,
    calculate_daily_calories,
    calculate_muscle_group_volume,
    macro_targets_from_split,
    round_half_up,
)
from fitplan.logic.validations import auto_fix_plan, build_validation_section, validate_plan
from fitplan.models.plan_models import (
    AIPlanFragment,
    GeneratedBy,
    MacroTargets,
    NutritionSection,
    NutritionTemplate,
    PlanMetadata,
    RegenerationConstraints,
    Severity,
    TrainingSection,
    TrainingTemplate,
    UserPreferences,
    ValidationCheck,
    ValidationRules,
    ValidationSection,
    WeeklyPlan,
)
from fitplan.templates.fallback import FALLBACK_PROGRESSION, build_fallback_week
from fitplan.templates.nutrition_templates import find_matching_nutrition_template
from fitplan.templates.training_templates import find_matching_training_template

logger = logging.getLogger(__name__)

GENERATE = "generate"
REGENERATE = "regenerate"

AI_FAILURES = (AIServiceError, ResponseFormatError, ConfigurationError)


class SectionSource(str, Enum):
    """Where a plan section's content currently comes from."""

    UNSET = "unset"
    BASELINE = "baseline"  # a template, or the previous plan when regenerating
    AI = "ai"


class PlanState(TypedDict, total=False):
    """
    Everything the pipeline passes between nodes for one call.
    """
    mode: str
    user_id: str
    week_number: int
    use_ai: bool
    preferences: UserPreferences
    effective_preferences: UserPreferences
    existing_plan: Optional[WeeklyPlan]
    constraints: Optional[RegenerationConstraints]
    cancel_event: Optional[threading.Event]
    started_at: float

    training_template: Optional[TrainingTemplate]
    nutrition_template: Optional[NutritionTemplate]
    daily_calories: int

    plan: WeeklyPlan
    training_source: SectionSource
    nutrition_source: SectionSource
    ai_fragment: Optional[AIPlanFragment]
    checks: List[ValidationCheck]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PlanGenerator:
    """Orchestrates template lookup, AI enrichment, validation and auto-fix.

    ``ai_service`` is anything with ``generate``, ``regenerate`` and
    ``model_name`` (normally an AIPlanService). Without one, generation stays
    template-only and regeneration fails with ConfigurationError.
    """

    def __init__(self, ai_service=None, rules: Optional[ValidationRules] = None, events: Optional[PipelineEvents] = None):
        self.ai_service = ai_service
        self.rules = rules or ValidationRules()
        self.events = events or PipelineEvents()
        self._generation_graph = self._build_generation_graph()
        self._regeneration_graph = self._build_regeneration_graph()

    # ---------------------------
    # Public surface
    # ---------------------------

    def generate_weekly_plan(
        self,
        user_id: str,
        preferences: UserPreferences,
        week_number: int = 1,
        use_ai: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> WeeklyPlan:
        """Build a new plan. Always returns a plan; problems end up in ``plan.validation``."""
        final_state = self._generation_graph.invoke({
            "mode": GENERATE,
            "user_id": user_id,
            "week_number": week_number,
            "use_ai": use_ai,
            "preferences": preferences,
            "effective_preferences": preferences,
            "cancel_event": cancel_event,
            "started_at": time.perf_counter(),
        })
        return final_state["plan"]

    def regenerate_plan(
        self,
        existing_plan: WeeklyPlan,
        constraints: Optional[RegenerationConstraints] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> WeeklyPlan:
        """Build the next version of ``existing_plan``. AI failures propagate."""
        final_state = self._regeneration_graph.invoke({
            "mode": REGENERATE,
            "user_id": existing_plan.user_id,
            "week_number": existing_plan.week_number,
            "use_ai": True,
            "preferences": existing_plan.preferences,
            "existing_plan": existing_plan,
            "constraints": constraints or RegenerationConstraints(),
            "cancel_event": cancel_event,
            "started_at": time.perf_counter(),
        })
        return final_state["plan"]

    def generate_plan_with_fallback(self, user_id: str, preferences: UserPreferences, week_number: int = 1) -> WeeklyPlan:
        """Generate with AI; if the AI plan fails validation, prefer a passing template-only plan."""
        plan = self.generate_weekly_plan(user_id, preferences, week_number, use_ai=True)
        if plan.validation.passed or plan.metadata.generated_by != GeneratedBy.AI:
            return plan

        logger.warning("AI plan %s failed validation, trying templates only", plan.id)
        template_plan = self.generate_weekly_plan(user_id, preferences, week_number, use_ai=False)
        if template_plan.validation.passed:
            return template_plan
        return plan

    # ---------------------------
    # Graphs
    # ---------------------------

    def _build_generation_graph(self):
        builder = StateGraph(PlanState)

        builder.add_node("resolve_templates", self.resolve_templates)
        builder.add_node("assemble_baseline", self.assemble_baseline)
        builder.add_node("enrich_with_ai", self.enrich_with_ai)
        self._add_shared_nodes(builder)

        builder.set_entry_point("resolve_templates")
        builder.add_edge("resolve_templates", "assemble_baseline")
        builder.add_conditional_edges("assemble_baseline", self.should_enrich, {
            "enrich_with_ai": "enrich_with_ai",
            "merge": "merge",
        })
        builder.add_edge("enrich_with_ai", "merge")
        builder.add_edge("merge", "compute_metrics")
        self._add_validation_edges(builder)

        return builder.compile()

    def _build_regeneration_graph(self):
        builder = StateGraph(PlanState)

        builder.add_node("prepare_regeneration", self.prepare_regeneration)
        builder.add_node("enrich_with_ai", self.enrich_with_ai)
        builder.add_node("apply_constraints", self.apply_constraints)
        self._add_shared_nodes(builder)

        builder.set_entry_point("prepare_regeneration")
        builder.add_edge("prepare_regeneration", "enrich_with_ai")
        builder.add_edge("enrich_with_ai", "merge")
        builder.add_edge("merge", "apply_constraints")
        builder.add_edge("apply_constraints", "compute_metrics")
        self._add_validation_edges(builder)

        return builder.compile()

    def _add_shared_nodes(self, builder: StateGraph) -> None:
        builder.add_node("merge", self.merge)
        builder.add_node("compute_metrics", self.compute_metrics)
        builder.add_node("validate", self.validate)
        builder.add_node("auto_fix", self.auto_fix)
        builder.add_node("revalidate", self.revalidate)
        builder.add_node("finalize", self.finalize)

    def _add_validation_edges(self, builder: StateGraph) -> None:
        builder.add_edge("compute_metrics", "validate")
        builder.add_conditional_edges("validate", self.needs_fix, {
            "auto_fix": "auto_fix",
            "finalize": "finalize",
        })
        builder.add_edge("auto_fix", "revalidate")
        builder.add_edge("revalidate", "finalize")
        builder.add_edge("finalize", END)

    # ---------------------------
    # Nodes
    # ---------------------------

    def resolve_templates(self, state: PlanState):
        preferences = state["preferences"]
        training_template = find_matching_training_template(
            preferences.goal,
            preferences.days_per_week,
            preferences.session_time,
            preferences.equipment,
            preferences.level,
        )
        nutrition_template = find_matching_nutrition_template(
            preferences.goal,
            preferences.diet_type,
            preferences.meals_per_day,
            preferences.allergies,
        )
        daily_calories = calculate_daily_calories(
            preferences.goal,
            preferences.weight,
            preferences.height,
            preferences.age,
            preferences.gender,
            preferences.activity_level,
        )
        self.events.emit(
            "template_match",
            training_template=training_template.id if training_template else None,
            nutrition_template=nutrition_template.id if nutrition_template else None,
            daily_calories=daily_calories,
        )
        return {
            "training_template": training_template,
            "nutrition_template": nutrition_template,
            "daily_calories": daily_calories,
        }

    def assemble_baseline(self, state: PlanState):
        preferences = state["preferences"]
        training_template = state.get("training_template")
        nutrition_template = state.get("nutrition_template")
        daily_calories = state["daily_calories"]
        week_number = state["week_number"]

        if nutrition_template:
            split = nutrition_template.macro_distribution
            macros = macro_targets_from_split(daily_calories, split.protein, split.carbs, split.fat)
            menu = [day.model_copy(deep=True) for day in nutrition_template.weekly_menu]
        else:
            macros = macro_targets_from_split(daily_calories, *DEFAULT_MACRO_SPLIT)
            menu = []

        if training_template:
            structure = [day.model_copy(deep=True) for day in training_template.weekly_structure]
            progression = training_template.progression.for_week(week_number)
        else:
            structure = []
            progression = ""

        both_templates = training_template is not None and nutrition_template is not None
        plan = WeeklyPlan(
            id=f"plan-{state['user_id']}-{week_number}-{uuid.uuid4().hex[:8]}",
            user_id=state["user_id"],
            week_number=week_number,
            created_at=_now(),
            version=1,
            preferences=preferences,
            training=TrainingSection(weekly_structure=structure, progression=progression),
            nutrition=NutritionSection(daily_calories=daily_calories, macro_targets=macros, weekly_menu=menu),
            validation=ValidationSection(),
            metadata=PlanMetadata(
                generated_by=GeneratedBy.TEMPLATE if both_templates else GeneratedBy.HYBRID,
                template_ids=[t.id for t in (training_template, nutrition_template) if t is not None],
            ),
        )
        self.events.emit("baseline_assembled", plan_id=plan.id, template_ids=plan.metadata.template_ids)
        return {
            "plan": plan,
            "training_source": SectionSource.BASELINE if training_template else SectionSource.UNSET,
            "nutrition_source": SectionSource.BASELINE if nutrition_template else SectionSource.UNSET,
        }

    def should_enrich(self, state: PlanState) -> str:
        missing_template = state.get("training_template") is None or state.get("nutrition_template") is None
        if state["use_ai"] and missing_template:
            return "enrich_with_ai"
        return "merge"

    def prepare_regeneration(self, state: PlanState):
        existing = state["existing_plan"]
        constraints = state["constraints"]

        previous = existing.constraints.model_dump(exclude_none=True) if existing.constraints else {}
        merged_constraints = RegenerationConstraints(**{**previous, **constraints.model_dump(exclude_none=True)})

        plan = existing.model_copy(deep=True)
        plan.id = f"{existing.id}-regenerated-{uuid.uuid4().hex[:8]}"
        plan.version = existing.version + 1
        plan.created_at = _now()
        plan.constraints = merged_constraints
        plan.validation = ValidationSection()
        plan.metadata.generation_time = None

        # the constraints narrow the preferences for this call only
        preferences = existing.preferences
        effective_preferences = preferences.model_copy(update={
            "session_time": merged_constraints.max_session_time or preferences.session_time,
            "allergies": list(preferences.allergies) + list(merged_constraints.exclude_foods or []),
        })

        return {
            "plan": plan,
            "constraints": merged_constraints,
            "effective_preferences": effective_preferences,
            "training_source": SectionSource.BASELINE if plan.training.weekly_structure else SectionSource.UNSET,
            "nutrition_source": SectionSource.BASELINE if plan.nutrition.weekly_menu else SectionSource.UNSET,
        }

    def enrich_with_ai(self, state: PlanState):
        self._check_cancelled(state, "before the AI call")
        mode = state["mode"]
        self.events.emit("ai_call_started", mode=mode)

        try:
            if self.ai_service is None:
                raise ConfigurationError("No AI service configured")
            if mode == REGENERATE:
                fragment = self.ai_service.regenerate(state["existing_plan"], state["constraints"])
            else:
                training_template = state.get("training_template")
                nutrition_template = state.get("nutrition_template")
                fragment = self.ai_service.generate(state["preferences"], {
                    "training": training_template.weekly_structure if training_template else None,
                    "nutrition": nutrition_template.weekly_menu if nutrition_template else None,
                })
        except AI_FAILURES as exc:
            self.events.emit("ai_call_failed", mode=mode, error=str(exc), status_code=getattr(exc, "status_code", None))
            if mode == REGENERATE:
                raise
            logger.warning("AI generation failed, continuing with templates only: %s", exc)
            return {"ai_fragment": None}

        self._check_cancelled(state, "after the AI call")
        self.events.emit(
            "ai_call_succeeded",
            mode=mode,
            training=fragment.has_training,
            nutrition=fragment.has_nutrition,
        )
        return {"ai_fragment": fragment}

    def merge(self, state: PlanState):
        plan = state["plan"]
        fragment = state.get("ai_fragment")

        training_source = state["training_source"]
        if fragment is not None and fragment.has_training:
            training_source = SectionSource.AI

        if training_source == SectionSource.AI:
            plan.training.weekly_structure = fragment.training.weekly_structure
            plan.training.progression = fragment.training.progression or plan.training.progression
        elif training_source == SectionSource.BASELINE:
            pass
        else:
            plan.training.weekly_structure = build_fallback_week(state["effective_preferences"])
            plan.training.progression = FALLBACK_PROGRESSION

        nutrition_source = state["nutrition_source"]
        if fragment is not None and fragment.has_nutrition:
            nutrition_source = SectionSource.AI

        if nutrition_source == SectionSource.AI:
            menu = fragment.nutrition.weekly_menu
            plan.nutrition.weekly_menu = menu
            plan.nutrition.meal_prep_tips = fragment.nutrition.meal_prep_tips
            first_day = menu[0]
            if first_day.has_totals:
                plan.nutrition.daily_calories = round_half_up(first_day.total_calories)
                plan.nutrition.macro_targets = MacroTargets(
                    protein=first_day.protein,
                    carbs=first_day.carbs,
                    fat=first_day.fat,
                )
            else:
                logger.warning("AI menu for plan %s has no day totals, keeping the calculated targets", plan.id)
        # BASELINE keeps the template menu, UNSET keeps the calculated targets with no menu

        self.events.emit("merge", training_source=training_source.value, nutrition_source=nutrition_source.value)
        return {"plan": plan, "training_source": training_source, "nutrition_source": nutrition_source}

    def apply_constraints(self, state: PlanState):
        plan = state["plan"]
        constraints = state["constraints"]
        nutrition = plan.nutrition
        weight = plan.preferences.weight

        if constraints.max_calories is not None:
            nutrition.daily_calories = min(nutrition.daily_calories, constraints.max_calories)
        if constraints.min_protein and weight:
            nutrition.macro_targets.protein = max(nutrition.macro_targets.protein, weight * constraints.min_protein)
        if constraints.max_carbs is not None:
            nutrition.macro_targets.carbs = min(nutrition.macro_targets.carbs, constraints.max_carbs)

        self.events.emit(
            "constraints_applied",
            daily_calories=nutrition.daily_calories,
            protein=nutrition.macro_targets.protein,
            carbs=nutrition.macro_targets.carbs,
        )
        return {"plan": plan}

    def compute_metrics(self, state: PlanState):
        plan = state["plan"]
        plan.training.total_volume = calculate_muscle_group_volume(plan.training.weekly_structure)
        return {"plan": plan}

    def validate(self, state: PlanState):
        return self._run_validation(state, "validation")

    def needs_fix(self, state: PlanState) -> str:
        if state["plan"].validation.passed:
            return "finalize"
        return "auto_fix"

    def auto_fix(self, state: PlanState):
        fixed = auto_fix_plan(state["plan"], state["checks"], self.rules)
        self.events.emit(
            "auto_fix",
            plan_id=fixed.id,
            daily_calories=fixed.nutrition.daily_calories,
            protein=fixed.nutrition.macro_targets.protein,
        )
        return {"plan": fixed}

    def revalidate(self, state: PlanState):
        return self._run_validation(state, "revalidation")

    def finalize(self, state: PlanState):
        plan = state["plan"]
        if state.get("ai_fragment") is not None:
            plan.metadata.generated_by = GeneratedBy.AI
            plan.metadata.ai_model = self.ai_service.model_name
        # no template content left in the plan
        if state["training_source"] == SectionSource.AI and state["nutrition_source"] == SectionSource.AI:
            plan.metadata.template_ids = []
        plan.metadata.generation_time = (time.perf_counter() - state["started_at"]) * 1000

        self.events.emit(
            "plan_finalized",
            plan_id=plan.id,
            version=plan.version,
            generated_by=plan.metadata.generated_by.value,
            passed=plan.validation.passed,
        )
        return {"plan": plan}

    # ---------------------------
    # Helpers
    # ---------------------------

    def _run_validation(self, state: PlanState, stage: str):
        plan = state["plan"]
        checks = validate_plan(plan, self.rules, plan.preferences.weight, state["effective_preferences"])
        plan.validation = build_validation_section(checks)
        self.events.emit(
            stage,
            plan_id=plan.id,
            passed=plan.validation.passed,
            errors=[c.name for c in checks if c.severity == Severity.ERROR and not c.passed],
            warnings=len(plan.validation.warnings),
        )
        return {"plan": plan, "checks": checks}

    def _check_cancelled(self, state: PlanState, where: str) -> None:
        cancel_event = state.get("cancel_event")
        if cancel_event is not None and cancel_event.is_set():
            self.events.emit("cancelled", where=where)
            raise GenerationCancelled(f"Plan {state['mode']} cancelled {where}")


def create_plan_generator(rules: Optional[ValidationRules] = None, events: Optional[PipelineEvents] = None) -> PlanGenerator:
    """A generator wired to the AI service from the environment, or template-only without a key."""
    from fitplan.llm_tools.ai_service import AIPlanService

    try:
        ai_service = AIPlanService(load_ai_config(), rules=rules)
    except ConfigurationError as exc:
        logger.warning("%s Plans will be generated from templates only.", exc)
        ai_service = None
    return PlanGenerator(ai_service=ai_service, rules=rules, events=events)


def generate_weekly_plan(
    user_id: str,
    preferences: UserPreferences,
    week_number: int = 1,
    use_ai: bool = True,
) -> WeeklyPlan:
    return create_plan_generator().generate_weekly_plan(user_id, preferences, week_number, use_ai)


def regenerate_plan(existing_plan: WeeklyPlan, constraints: RegenerationConstraints) -> WeeklyPlan:
    return create_plan_generator().regenerate_plan(existing_plan, constraints)
