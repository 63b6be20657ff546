"""Process plan stores.

One plan per building, addressed by building id. The engine never talks to a
store directly; callers load a plan, run a trigger, and save the result.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog
from pydantic import ValidationError

from framecalc.errors import PlanStoreError
from framecalc.models import ProcessPlan

if TYPE_CHECKING:
    from framecalc.planning.engine import ProcessPlanEngine

logger = structlog.get_logger(__name__)

PLAN_KEY_PREFIX = "contech_process_plan_"


def plan_key(building_id: str) -> str:
    """Building-scoped storage key of a plan."""
    return f"{PLAN_KEY_PREFIX}{building_id}"


class PlanStore(Protocol):
    def get(self, building_id: str) -> ProcessPlan | None: ...

    def set(self, building_id: str, plan: ProcessPlan) -> None: ...


class InMemoryPlanStore:
    """Dict-backed store, mainly for tests and one-shot CLI runs."""

    def __init__(self) -> None:
        self._plans: dict[str, ProcessPlan] = {}

    def get(self, building_id: str) -> ProcessPlan | None:
        return self._plans.get(building_id)

    def set(self, building_id: str, plan: ProcessPlan) -> None:
        self._plans[building_id] = plan


class JsonFilePlanStore:
    """One camelCase JSON file per building under ``directory``."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, building_id: str) -> Path:
        return self.directory / f"{plan_key(building_id)}.json"

    def get(self, building_id: str) -> ProcessPlan | None:
        """Load a building's plan, None when none was saved yet.

        Raises:
            PlanStoreError: If the file cannot be read or is not a valid plan
        """
        path = self.path_for(building_id)
        if not path.exists():
            return None

        try:
            return ProcessPlan.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PlanStoreError(f"Cannot read plan {path}: {e}") from e
        except ValidationError as e:
            raise PlanStoreError(f"Invalid plan in {path}: {e}") from e

    def set(self, building_id: str, plan: ProcessPlan) -> None:
        """Write a building's plan atomically.

        Raises:
            PlanStoreError: If the file cannot be written
        """
        now = datetime.now(timezone.utc).isoformat()
        stamped = plan.model_copy(
            update={"created_at": plan.created_at or now, "updated_at": now}
        )

        path = self.path_for(building_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(stamped.to_json(), encoding="utf-8")
            os.replace(tmp_path, path)  # atomic on same FS
        except OSError as e:
            raise PlanStoreError(f"Cannot write plan {path}: {e}") from e

        logger.info(
            "Process plan saved",
            building_id=building_id,
            total_days=plan.total_days,
            path=str(path),
        )


def load_or_initialize(store: PlanStore, engine: ProcessPlanEngine) -> ProcessPlan:
    """Stored plan recalculated against the engine's building, or a fresh one."""
    plan = store.get(engine.building.id)
    if plan is None:
        return engine.initial_plan()
    return engine.recalculate(plan)
