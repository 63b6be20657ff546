"""Process plan engine, category scopes and plan stores."""

from framecalc.planning.engine import ProcessPlanEngine, ScopeQuantities, parse_positive
from framecalc.planning.scopes import (
    CategoryScope,
    SpecialRowKind,
    parse_special_row,
    special_row_label,
)
from framecalc.planning.store import (
    InMemoryPlanStore,
    JsonFilePlanStore,
    PlanStore,
    load_or_initialize,
)

__all__ = [
    "CategoryScope",
    "InMemoryPlanStore",
    "JsonFilePlanStore",
    "PlanStore",
    "ProcessPlanEngine",
    "ScopeQuantities",
    "SpecialRowKind",
    "load_or_initialize",
    "parse_positive",
    "parse_special_row",
    "special_row_label",
]
