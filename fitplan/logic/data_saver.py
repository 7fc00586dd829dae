import os
import json
import logging
from typing import List, Optional

from fitplan.config import DATA_DIR
from fitplan.errors import PlanNotFoundError
from fitplan.models.plan_models import WeeklyPlan

logger = logging.getLogger(__name__)


class JsonPlanStore:
    """Keeps every plan version of a user in ``<data_dir>/<user_id>_plans.json``."""

    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = data_dir

    def _file_path(self, user_id: str) -> str:
        return os.path.join(self.data_dir, f"{user_id}_plans.json")

    def _load(self, user_id: str) -> List[WeeklyPlan]:
        file_path = self._file_path(user_id)
        if not os.path.exists(file_path):
            return []
        with open(file_path, 'r', encoding='utf-8') as f:
            raw_plans = json.load(f)
        return [WeeklyPlan.model_validate(raw) for raw in raw_plans]

    def _write(self, user_id: str, plans: List[WeeklyPlan]) -> None:
        if not os.path.exists(self.data_dir):
            os.makedirs(self.data_dir)

        plans = sorted(plans, key=lambda plan: plan.created_at)
        data_to_save = [plan.model_dump(mode="json", by_alias=True) for plan in plans]

        with open(self._file_path(user_id), 'w', encoding='utf-8') as f:
            json.dump(data_to_save, f, ensure_ascii=False, indent=4)

    def save(self, plan: WeeklyPlan) -> WeeklyPlan:
        """Append a new plan (a regenerated version is a new plan with its own id)."""
        plans = self._load(plan.user_id)
        plans.append(plan)
        self._write(plan.user_id, plans)
        logger.info("Saved plan %s (version %s) for user %s", plan.id, plan.version, plan.user_id)
        return plan

    def get_all(self, user_id: str) -> List[WeeklyPlan]:
        """All plans of a user, oldest first."""
        return sorted(self._load(user_id), key=lambda plan: plan.created_at)

    def get_latest(self, user_id: str) -> Optional[WeeklyPlan]:
        plans = self.get_all(user_id)
        return plans[-1] if plans else None

    def update(self, plan: WeeklyPlan) -> WeeklyPlan:
        """Replace the stored plan that has the same id."""
        plans = self._load(plan.user_id)
        for index, stored in enumerate(plans):
            if stored.id == plan.id:
                plans[index] = plan
                self._write(plan.user_id, plans)
                logger.info("Updated plan %s for user %s", plan.id, plan.user_id)
                return plan
        raise PlanNotFoundError(f"No plan {plan.id} stored for user {plan.user_id}")
