"""Override and aggregation engine for per-building process plans.

Every public operation returns a new ``ProcessPlan``; the input plan is never
mutated. Each trigger (override edit, process-type change, quantity edit)
re-sums every scope of every active category and recomputes ``total_days``.

Scopes:
- 버림, 기초: one scalar scope per category
- 지하층: one scope per basement floor (items tagged with the floor label)
- 셋팅층: one scope per setting/normal floor
- 기준층: one scope per expanded standard floor; overrides are shared
- 옥탑층: one scope per rooftop floor
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal, get_args

import structlog

from framecalc.catalog.modules import (
    ProcessModuleCatalog,
    allowed_process_types,
    default_process_type,
    get_catalog,
)
from framecalc.config import AppConfig, get_config
from framecalc.duration.calculator import (
    ItemBreakdown,
    breakdown,
    duration_for,
    floor_sum,
    mode_for,
)
from framecalc.floors.taxonomy import floor_number_of, normalize_label, rooftop_index
from framecalc.models import (
    Building,
    CategoryProcess,
    Floor,
    FloorProcess,
    MaterialField,
    OverrideKey,
    ProcessCategory,
    ProcessModuleItem,
    ProcessPlan,
)
from framecalc.planning.scopes import (
    PER_FLOOR_CATEGORIES,
    PER_FLOOR_PROCESS_TYPE_CATEGORIES,
    CategoryScope,
    SpecialRowKind,
    parse_special_row,
    special_row_label,
)
from framecalc.quantities.reference import parse_reference
from framecalc.quantities.resolver import (
    FOUNDATION_TRADE_GROUP,
    STRIP_TRADE_GROUP,
    FloorRef,
    QuantityResolver,
    RowKind,
    row_for,
)

logger = structlog.get_logger(__name__)

PreliminaryWork = Literal[
    "temporary_work_days",
    "earth_retention_work_days",
    "earthwork_work_days",
]

PRELIMINARY_WORK_FIELDS: tuple[str, ...] = get_args(PreliminaryWork)

_TRADE_GROUP_CATEGORIES = {
    ProcessCategory.STRIP: STRIP_TRADE_GROUP,
    ProcessCategory.FOUNDATION: FOUNDATION_TRADE_GROUP,
}


def parse_positive(value: Any) -> float | int | None:
    """Lenient number parsing; None for non-numeric or non-positive input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return int(number) if number.is_integer() else number


@dataclass(frozen=True)
class ScopeQuantities:
    """Displayed material quantities of one scope."""

    formwork: float = 0.0
    rebar: float = 0.0
    concrete: float = 0.0


class ProcessPlanEngine:
    """Compute and edit the process plan of one building.

    Args:
        building: Read-only building snapshot
        scope: Which categories are aggregated into ``total_days``
        catalog: Process module catalog (defaults to the configured one)
        config: Application configuration (defaults to ``get_config()``)
    """

    def __init__(
        self,
        building: Building,
        scope: CategoryScope = CategoryScope.FULL_BUILDING,
        catalog: ProcessModuleCatalog | None = None,
        config: AppConfig | None = None,
    ):
        self.building = building
        self.scope = scope
        self.config = config or get_config()
        self.catalog = catalog or get_catalog(self.config.catalog_path)
        self.resolver = QuantityResolver(building)
        self.taxonomy = self.resolver.taxonomy

        # Pump-car fleet cap applies to every scope
        self.max_equipment_count = (
            building.meta.pump_car_count or self.config.calculation.default_pump_car_count
        )

    def with_building(self, building: Building) -> ProcessPlanEngine:
        """Engine for an edited building snapshot (same scope and catalog)."""
        return ProcessPlanEngine(building, self.scope, self.catalog, self.config)

    @property
    def categories(self) -> tuple[ProcessCategory, ...]:
        return self.scope.categories

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def initial_plan(self) -> ProcessPlan:
        """Zero-filled default plan for the building, then recalculated."""
        processes = {
            category: CategoryProcess(days=0, process_type=default_process_type(category))
            for category in self.categories
        }
        plan = ProcessPlan(
            id=f"plan-{self.building.id}",
            building_id=self.building.id,
            project_id=self.building.project_id,
            processes=processes,
            total_days=0,
        )
        return self.recalculate(plan)

    def recalculate(self, plan: ProcessPlan) -> ProcessPlan:
        """Fresh ``days`` for every active category and a fresh ``total_days``."""
        processes = dict(plan.processes)
        for category in self.categories:
            current = processes.get(category) or CategoryProcess(
                process_type=default_process_type(category)
            )
            processes[category] = current.model_copy(
                update={"days": self.category_days(plan, category)}
            )

        total = sum(processes[category].days for category in self.categories)
        logger.debug(
            "Process plan recalculated",
            building_id=self.building.id,
            scope=self.scope.value,
            total_days=total,
        )
        return plan.model_copy(update={"processes": processes, "total_days": total})

    def compute_total_days(self, plan: ProcessPlan) -> int:
        """Building total for a plan; pure, independent of stored ``days``."""
        return sum(self.category_days(plan, category) for category in self.categories)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def set_override(
        self,
        plan: ProcessPlan,
        category: ProcessCategory,
        floor_label: str | None,
        item_id: str,
        value: Any,
    ) -> ProcessPlan:
        """Set or clear an item's direct-work-day override.

        Non-numeric or non-positive values remove the override, so the item
        reverts to its computed value.
        """
        days = parse_positive(value)
        key = self.override_key(category, floor_label, item_id)

        overrides = dict(plan.item_direct_work_days_overrides)
        if category == ProcessCategory.STANDARD:
            # Per-floor keys would shadow the shared one on their floors
            for floor in self.taxonomy.standard:
                legacy = OverrideKey(category, floor.floor_label, item_id).serialize()
                if legacy != key:
                    overrides.pop(legacy, None)

        if days is None:
            overrides.pop(key, None)
        else:
            overrides[key] = days

        logger.debug("Override updated", key=key, days=days)
        return self.recalculate(
            plan.model_copy(update={"item_direct_work_days_overrides": overrides})
        )

    def clear_override(
        self,
        plan: ProcessPlan,
        category: ProcessCategory,
        floor_label: str | None,
        item_id: str,
    ) -> ProcessPlan:
        return self.set_override(plan, category, floor_label, item_id, None)

    def change_process_type(
        self,
        plan: ProcessPlan,
        category: ProcessCategory,
        process_type: str,
        floor_label: str | None = None,
    ) -> ProcessPlan:
        """Select another catalog module for a category (or one floor of it).

        Basement and rooftop floors carry their own process type; a special
        basement row changes the type of its parent floor.
        """
        if process_type not in allowed_process_types(category):
            logger.debug(
                "Uncatalogued process type selected",
                category=category.value,
                process_type=process_type,
            )

        current = plan.processes.get(category) or CategoryProcess(
            process_type=default_process_type(category)
        )

        special = parse_special_row(floor_label)
        if special is not None:
            floor_label = special[0]

        if floor_label and category in PER_FLOOR_PROCESS_TYPE_CATEGORIES:
            floors = dict(current.floors or {})
            floors[normalize_label(floor_label)] = FloorProcess(process_type=process_type)
            updated = current.model_copy(update={"floors": floors})
        else:
            updated = current.model_copy(update={"process_type": process_type})

        processes = dict(plan.processes)
        processes[category] = updated
        return self.recalculate(plan.model_copy(update={"processes": processes}))

    def set_special_row_quantity(
        self,
        plan: ProcessPlan,
        floor_label: str,
        kind: SpecialRowKind,
        field: MaterialField,
        value: Any,
    ) -> ProcessPlan:
        """Enter a material quantity of a basement special row.

        Non-numeric or non-positive values remove the entry.
        """
        label = special_row_label(normalize_label(floor_label), kind)
        quantities = {key: dict(fields) for key, fields in plan.special_row_quantities.items()}
        fields = quantities.get(label, {})

        amount = parse_positive(value)
        if amount is None:
            fields.pop(field.value, None)
        else:
            fields[field.value] = amount

        if fields:
            quantities[label] = fields
        else:
            quantities.pop(label, None)

        return self.recalculate(plan.model_copy(update={"special_row_quantities": quantities}))

    def set_preliminary_work_days(
        self, plan: ProcessPlan, field: PreliminaryWork, value: Any
    ) -> ProcessPlan:
        """Record basement preliminary work days (not part of ``total_days``).

        Unknown fields leave the plan unchanged.
        """
        if field not in PRELIMINARY_WORK_FIELDS:
            logger.debug("Unknown preliminary work field", field=field)
            return plan
        return self.recalculate(plan.model_copy(update={field: parse_positive(value)}))

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def floors_for(self, category: ProcessCategory) -> tuple[Floor, ...]:
        """Floors of a per-floor category in aggregation order."""
        taxonomy = self.taxonomy
        if category == ProcessCategory.BASEMENT:
            return taxonomy.basement
        if category == ProcessCategory.SETTING:
            return taxonomy.setting
        if category == ProcessCategory.STANDARD:
            return taxonomy.standard
        if category == ProcessCategory.ROOFTOP:
            return taxonomy.rooftop
        return ()

    @property
    def representative_standard_label(self) -> str:
        """Label every standard-floor override is stored under (highest floor)."""
        standard = self.taxonomy.standard
        return standard[-1].floor_label if standard else ""

    def override_key(
        self, category: ProcessCategory, floor_label: str | None, item_id: str
    ) -> str:
        if category == ProcessCategory.STANDARD:
            label = self.representative_standard_label
        elif category in PER_FLOOR_CATEGORIES and floor_label:
            special = parse_special_row(floor_label)
            label = floor_label.strip() if special else normalize_label(floor_label)
        else:
            label = ""
        return OverrideKey(category, label, item_id).serialize()

    def override_for(
        self,
        plan: ProcessPlan,
        category: ProcessCategory,
        floor_label: str | None,
        item_id: str,
    ) -> float | None:
        """Override in effect for an item, None when computed."""
        overrides = plan.item_direct_work_days_overrides
        keys = []
        if category == ProcessCategory.STANDARD and floor_label:
            keys.append(OverrideKey(category, normalize_label(floor_label), item_id).serialize())
        keys.append(self.override_key(category, floor_label, item_id))

        for key in keys:
            days = parse_positive(overrides.get(key))
            if days is not None:
                return days
        return None

    def process_type_for(
        self, plan: ProcessPlan, category: ProcessCategory, floor_label: str | None = None
    ) -> str:
        current = plan.processes.get(category)
        if current is None:
            return default_process_type(category)

        if floor_label and category in PER_FLOOR_PROCESS_TYPE_CATEGORIES and current.floors:
            special = parse_special_row(floor_label)
            label = special[0] if special else normalize_label(floor_label)
            floor_process = current.floors.get(label)
            if floor_process is not None:
                return floor_process.process_type

        return current.process_type or default_process_type(category)

    def items_for(
        self, plan: ProcessPlan, category: ProcessCategory, floor_label: str | None = None
    ) -> tuple[ProcessModuleItem, ...]:
        """Catalog items that apply to a scope."""
        module = self.catalog.get_module(category, self.process_type_for(plan, category, floor_label))
        if module is None:
            return ()

        if category == ProcessCategory.BASEMENT and floor_label:
            special = parse_special_row(floor_label)
            label = special[0] if special else normalize_label(floor_label)
            return tuple(item for item in module.items if item.floor_label == label)

        if category == ProcessCategory.ROOFTOP and floor_label:
            index = rooftop_index(floor_label)
            return tuple(
                item
                for item in module.items
                if not item.floor_label
                or item.floor_label == floor_label
                or (index is not None and rooftop_index(item.floor_label) == index)
            )

        return module.items

    def _find_floor(self, category: ProcessCategory, floor_label: str | None) -> Floor | None:
        if not floor_label:
            return None
        label = normalize_label(floor_label)
        for floor in self.floors_for(category):
            if floor.floor_label == label:
                return floor
        return None

    def item_quantity(
        self, category: ProcessCategory, item: ProcessModuleItem, floor: Floor | None = None
    ) -> float:
        """Quantity feeding an item, targeted at a floor for per-floor categories."""
        reference = item.quantity_reference
        parsed = parse_reference(reference)
        if floor is None or parsed is None or parsed.field is None:
            return self.resolver.resolve_by_reference(reference)

        label = floor.floor_label
        if category == ProcessCategory.STANDARD:
            return (
                self.resolver.resolve_from_floor(label, parsed.field, floor.range_floor_id)
                * parsed.ratio
            )

        if category == ProcessCategory.SETTING:
            number = floor_number_of(label)
            target = FloorRef(RowKind.ABOVE_GRADE, number) if number is not None else None
        elif category == ProcessCategory.ROOFTOP:
            index = rooftop_index(label)
            target = FloorRef(RowKind.ROOFTOP, index) if index is not None else None
        else:
            return self.resolver.resolve_by_reference(reference)

        if target is None:
            return self.resolver.resolve_by_reference(reference)
        row = row_for(target)
        if row is not None:
            return self.resolver.resolve(parsed.with_row(row))
        # Beyond the sheet's rows: read the floor directly
        return self.resolver.resolve_from_floor(label, parsed.field) * parsed.ratio

    def item_days(
        self,
        plan: ProcessPlan,
        category: ProcessCategory,
        item: ProcessModuleItem,
        floor: Floor | None = None,
    ) -> float:
        """Override if present, else the computed direct work days."""
        override = self.override_for(plan, category, floor.floor_label if floor else None, item.id)
        if override is not None:
            return override
        quantity = self.item_quantity(category, item, floor)
        return duration_for(mode_for(item), quantity, self.max_equipment_count)

    def scope_days(
        self, plan: ProcessPlan, category: ProcessCategory, floor_label: str | None = None
    ) -> int:
        """Floored sum of item days of one (category, floor) scope."""
        special = parse_special_row(floor_label) if category == ProcessCategory.BASEMENT else None
        if special is not None:
            return self.special_row_days(plan, special[0], special[1])

        floor = self._find_floor(category, floor_label) if category in PER_FLOOR_CATEGORIES else None
        if category in PER_FLOOR_CATEGORIES and floor is None:
            return 0

        label = floor.floor_label if floor else None
        return floor_sum(
            self.item_days(plan, category, item, floor)
            for item in self.items_for(plan, category, label)
        )

    def category_days(self, plan: ProcessPlan, category: ProcessCategory) -> int:
        """Days of a category: scalar scope, or the sum over its floors."""
        if category not in PER_FLOOR_CATEGORIES:
            return self.scope_days(plan, category)
        return sum(
            self.scope_days(plan, category, floor.floor_label)
            for floor in self.floors_for(category)
        )

    # ------------------------------------------------------------------
    # Basement special rows
    # ------------------------------------------------------------------

    def special_row_quantity(
        self, plan: ProcessPlan, parent_label: str, kind: SpecialRowKind, field: MaterialField
    ) -> float:
        fields = plan.special_row_quantities.get(special_row_label(parent_label, kind)) or {}
        return float(parse_positive(fields.get(field.value)) or 0)

    def special_row_days(self, plan: ProcessPlan, parent_label: str, kind: SpecialRowKind) -> int:
        """Days of a special row, from its own quantities and the parent's items.

        Not part of the parent floor's days nor of ``total_days``.
        """
        parent_label = normalize_label(parent_label)
        label = special_row_label(parent_label, kind)
        category = ProcessCategory.BASEMENT

        total = []
        for item in self.items_for(plan, category, parent_label):
            override = self.override_for(plan, category, label, item.id)
            if override is not None:
                total.append(override)
                continue

            quantity = 0.0
            parsed = parse_reference(item.quantity_reference)
            if parsed is not None and parsed.field is not None:
                quantity = (
                    self.special_row_quantity(plan, parent_label, kind, parsed.field) * parsed.ratio
                )
            total.append(duration_for(mode_for(item), quantity, self.max_equipment_count))
        return floor_sum(total)

    # ------------------------------------------------------------------
    # Display figures
    # ------------------------------------------------------------------

    def item_breakdowns(
        self, plan: ProcessPlan, category: ProcessCategory, floor_label: str | None = None
    ) -> list[ItemBreakdown]:
        """Per-item crew figures of one scope."""
        special = parse_special_row(floor_label) if category == ProcessCategory.BASEMENT else None
        floor = None if special else self._find_floor(category, floor_label)
        label = special[0] if special else (floor.floor_label if floor else floor_label)

        rows = []
        for item in self.items_for(plan, category, label):
            if special is not None:
                parsed = parse_reference(item.quantity_reference)
                quantity = 0.0
                if parsed is not None and parsed.field is not None:
                    quantity = (
                        self.special_row_quantity(plan, special[0], special[1], parsed.field)
                        * parsed.ratio
                    )
                override = self.override_for(plan, category, floor_label, item.id)
            else:
                quantity = self.item_quantity(category, item, floor)
                override = self.override_for(plan, category, label, item.id)
            rows.append(breakdown(item, quantity, self.max_equipment_count, override))
        return rows

    def scope_quantities(
        self, plan: ProcessPlan, category: ProcessCategory, floor_label: str | None = None
    ) -> ScopeQuantities:
        """Formwork, rebar and concrete shown for a scope.

        Above-grade formwork counts gang-form, aluminium form and formwork.
        Basement floors show their own figures net of their special rows.
        """
        resolver = self.resolver
        group = _TRADE_GROUP_CATEGORIES.get(category)
        if group is not None:
            return ScopeQuantities(
                formwork=sum(
                    resolver.trade_group_total(group, field)
                    for field in (MaterialField.GANG_FORM, MaterialField.AL_FORM, MaterialField.FORMWORK)
                ),
                rebar=resolver.trade_group_total(group, MaterialField.REBAR),
                concrete=resolver.trade_group_total(group, MaterialField.CONCRETE),
            )

        if not floor_label:
            return ScopeQuantities()

        if category == ProcessCategory.BASEMENT:
            special = parse_special_row(floor_label)
            if special is not None:
                parent, kind = special
                return ScopeQuantities(
                    formwork=self.special_row_quantity(plan, parent, kind, MaterialField.FORMWORK),
                    rebar=self.special_row_quantity(plan, parent, kind, MaterialField.REBAR),
                    concrete=self.special_row_quantity(plan, parent, kind, MaterialField.CONCRETE),
                )

            label = normalize_label(floor_label)

            def net(field: MaterialField) -> float:
                base = resolver.resolve_from_floor(label, field)
                deducted = sum(
                    self.special_row_quantity(plan, label, kind, field) for kind in SpecialRowKind
                )
                return max(0.0, base - deducted)

            return ScopeQuantities(
                formwork=net(MaterialField.FORMWORK),
                rebar=net(MaterialField.REBAR),
                concrete=net(MaterialField.CONCRETE),
            )

        floor = self._find_floor(category, floor_label)
        label = floor.floor_label if floor else normalize_label(floor_label)
        range_floor_id = floor.range_floor_id if floor else None

        def quantity(field: MaterialField) -> float:
            return resolver.resolve_from_floor(label, field, range_floor_id)

        return ScopeQuantities(
            formwork=quantity(MaterialField.GANG_FORM)
            + quantity(MaterialField.AL_FORM)
            + quantity(MaterialField.FORMWORK),
            rebar=quantity(MaterialField.REBAR),
            concrete=quantity(MaterialField.CONCRETE),
        )
