"""Schedule table rows in display order (top of the building first)."""

from __future__ import annotations

from dataclasses import dataclass

from framecalc.models import ProcessCategory, ProcessPlan
from framecalc.planning.engine import ProcessPlanEngine
from framecalc.planning.scopes import SpecialRowKind, special_row_label


@dataclass(frozen=True)
class ScheduleRow:
    category: ProcessCategory
    floor_label: str | None
    process_type: str
    days: int
    formwork: float
    rebar: float
    concrete: float
    special: bool = False  # basement special rows are not part of the total


def _row(
    engine: ProcessPlanEngine,
    plan: ProcessPlan,
    category: ProcessCategory,
    floor_label: str | None = None,
    special: bool = False,
) -> ScheduleRow:
    quantities = engine.scope_quantities(plan, category, floor_label)
    return ScheduleRow(
        category=category,
        floor_label=floor_label,
        process_type=engine.process_type_for(plan, category, floor_label),
        days=engine.scope_days(plan, category, floor_label),
        formwork=quantities.formwork,
        rebar=quantities.rebar,
        concrete=quantities.concrete,
        special=special,
    )


def build_schedule_rows(engine: ProcessPlanEngine, plan: ProcessPlan) -> list[ScheduleRow]:
    """Rows for every scope of the engine's active categories.

    Order: rooftop, standard and setting floors (high to low), basement
    floors deepest first each followed by its special rows, foundation,
    strip concrete.
    """
    active = set(engine.categories)
    taxonomy = engine.taxonomy
    rows: list[ScheduleRow] = []

    if ProcessCategory.ROOFTOP in active:
        for floor in reversed(taxonomy.rooftop):
            rows.append(_row(engine, plan, ProcessCategory.ROOFTOP, floor.floor_label))

    if ProcessCategory.STANDARD in active:
        for floor in taxonomy.standard_display:
            rows.append(_row(engine, plan, ProcessCategory.STANDARD, floor.floor_label))

    if ProcessCategory.SETTING in active:
        for floor in taxonomy.setting_display:
            rows.append(_row(engine, plan, ProcessCategory.SETTING, floor.floor_label))

    if ProcessCategory.BASEMENT in active:
        for floor in taxonomy.basement_display:
            rows.append(_row(engine, plan, ProcessCategory.BASEMENT, floor.floor_label))
            for kind in SpecialRowKind:
                label = special_row_label(floor.floor_label, kind)
                rows.append(_row(engine, plan, ProcessCategory.BASEMENT, label, special=True))

    for category in (ProcessCategory.FOUNDATION, ProcessCategory.STRIP):
        if category in active:
            rows.append(_row(engine, plan, category))

    return rows
