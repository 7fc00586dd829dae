"""Weekly training and nutrition plans: templates, AI enrichment, validation and auto-fix."""
from fitplan.config import AIServiceConfig, load_ai_config
from fitplan.errors import (
    AIServiceError,
    ConfigurationError,
    GenerationCancelled,
    PlanEngineError,
    PlanNotFoundError,
    ResponseFormatError,
)
from fitplan.logic.data_saver import JsonPlanStore
from fitplan.logic.events import PipelineEvents
from fitplan.logic.plan_generator import (
    PlanGenerator,
    create_plan_generator,
    generate_weekly_plan,
    regenerate_plan,
)
from fitplan.logic.validations import auto_fix_plan, is_plan_valid, validate_plan
from fitplan.llm_tools.ai_service import AIPlanService
from fitplan.models.plan_models import (
    RegenerationConstraints,
    UserPreferences,
    ValidationRules,
    WeeklyPlan,
)

__all__ = [
    "AIPlanService",
    "AIServiceConfig",
    "AIServiceError",
    "ConfigurationError",
    "GenerationCancelled",
    "JsonPlanStore",
    "PipelineEvents",
    "PlanEngineError",
    "PlanGenerator",
    "PlanNotFoundError",
    "RegenerationConstraints",
    "ResponseFormatError",
    "UserPreferences",
    "ValidationRules",
    "WeeklyPlan",
    "auto_fix_plan",
    "create_plan_generator",
    "generate_weekly_plan",
    "is_plan_valid",
    "load_ai_config",
    "regenerate_plan",
    "validate_plan",
]
