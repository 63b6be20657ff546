"""FrameCalc Pydantic models for type-safe data validation.

Field names are snake_case in Python and camelCase on the wire, so persisted
buildings and plans keep their original JSON shape.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STANDARD_PROCESS = "표준공정"
CYCLE_PROCESS_TYPES = {
    5: "5일 사이클",
    6: "6일 사이클",
    7: "7일 사이클",
    8: "8일 사이클",
}

# Trade group preferred when a floor carries several trade records
APARTMENT_TRADE_GROUP = "아파트"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class LevelType(str, Enum):
    """Above or below grade."""

    ABOVE_GRADE = "지상"
    BELOW_GRADE = "지하"


class FloorClass(str, Enum):
    """Semantic floor class assigned in the building's floor settings."""

    FOUNDATION = "기초"
    BASEMENT = "지하층"
    SETTING = "셋팅층"
    STANDARD = "기준층"
    TOP = "최상층"
    PH = "PH층"
    ROOFTOP = "옥탑층"
    NORMAL = "일반층"

    @classmethod
    def _missing_(cls, value: object) -> FloorClass | None:
        # Older exports use the bare level name for basement floors
        if value == "지하":
            return cls.BASEMENT
        return None


class ProcessCategory(str, Enum):
    """Work categories a building's frame schedule is split into."""

    STRIP = "버림"
    FOUNDATION = "기초"
    BASEMENT = "지하층"
    SETTING = "셋팅층"
    STANDARD = "기준층"
    PH = "PH층"
    ROOFTOP = "옥탑층"


class MaterialField(str, Enum):
    """Material columns of the floor trade table."""

    GANG_FORM = "gangForm"
    AL_FORM = "alForm"
    FORMWORK = "formwork"
    STRIP_CLEAN = "stripClean"
    REBAR = "rebar"
    CONCRETE = "concrete"

    @property
    def quantity_key(self) -> str:
        """Sub-field holding the measured quantity."""
        return _QUANTITY_KEYS[self]


_QUANTITY_KEYS = {
    MaterialField.GANG_FORM: "areaM2",
    MaterialField.AL_FORM: "areaM2",
    MaterialField.FORMWORK: "areaM2",
    MaterialField.STRIP_CLEAN: "areaM2",
    MaterialField.REBAR: "ton",
    MaterialField.CONCRETE: "volumeM3",
}


def to_quantity(value: Any) -> float:
    """Coerce a raw quantity to a finite, non-negative float (0 otherwise)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


class Floor(_CamelModel):
    """A floor from the building's floor settings."""

    id: str
    building_id: str | None = None
    floor_label: str  # "B2", "1F", "코어1-3F", "2~14F 기준층", "PH1"
    floor_number: int = 0  # Sort key (-2, -1, 1, 2, ...)
    level_type: LevelType = LevelType.ABOVE_GRADE
    floor_class: FloorClass = FloorClass.NORMAL
    height: float | None = None

    # Set on synthetic floors expanded from a range label
    range_floor_id: str | None = None


class FloorTrade(_CamelModel):
    """Material quantities of one floor and trade group."""

    id: str = ""
    floor_id: str
    building_id: str | None = None
    trade_group: str = APARTMENT_TRADE_GROUP  # "버림", "기초", "아파트", ...
    trades: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def quantity(self, field: MaterialField, sub_field: str | None = None) -> float:
        """Measured quantity for a material field, 0 when absent."""
        data = self.trades.get(field.value) or {}
        return to_quantity(data.get(sub_field or field.quantity_key))


class UnitTypePattern(_CamelModel):
    """Unit numbers of one core sharing a unit type ("101~104 84A")."""

    from_: int = Field(alias="from")
    to: int
    type: str
    core_number: int | None = None


class FloorCount(_CamelModel):
    basement: int = 0
    ground: int = 0
    ph: int = 0
    core_ground_floors: list[int] | None = None
    core_basement_floors: list[int] | None = None
    core_ph_floors: list[int] | None = None
    pilotis_count: int | None = None
    core_pilotis_counts: list[int] | None = None


class BuildingMeta(_CamelModel):
    """Building-level metadata from the basic information page."""

    total_units: int = 0
    unit_type_pattern: list[UnitTypePattern] = Field(default_factory=list)
    core_count: int = 1
    core_type: str | None = None
    slab_type: str | None = None
    floor_count: FloorCount = Field(default_factory=FloorCount)
    standard_floor_cycle: int | None = None
    pump_car_count: int | None = None  # Pump-car fleet cap


class Building(_CamelModel):
    """Read-only building snapshot consumed by the schedule engine."""

    id: str
    project_id: str = ""
    building_name: str = ""
    building_number: int = 0
    meta: BuildingMeta = Field(default_factory=BuildingMeta)
    floors: list[Floor] = Field(default_factory=list)
    floor_trades: list[FloorTrade] = Field(default_factory=list)


class ProcessModuleItem(_CamelModel):
    """Immutable catalog line item.

    Which duration mode applies is decided by the populated optional fields;
    see ``framecalc.duration.calculator.mode_for``.
    """

    id: str
    work_item: str
    unit: str = ""
    quantity_reference: str | None = None  # "D6", "F7*0.45"
    daily_productivity: float = 0.0  # Quantity per worker-day
    calculation_basis: str | None = None
    equipment_name: str | None = None
    equipment_count: float = 1.0  # Crew equipment for productivity mode
    direct_work_days: float | None = None
    indirect_days: float = 0.0
    indirect_work_item: str | None = None
    equipment_calculation_base: float | None = None  # Quantity per equipment unit
    equipment_workers_per_unit: float | None = None
    floor_label: str | None = None  # "B2", "B1", "옥탑1"


class ProcessModule(_CamelModel):
    """Catalog rows for one (category, process type) pair."""

    id: str
    process_type: str
    category: ProcessCategory
    items: tuple[ProcessModuleItem, ...] = ()


class FloorProcess(_CamelModel):
    process_type: str


class CategoryProcess(_CamelModel):
    """Plan state of one category."""

    days: int = 0
    process_type: str = STANDARD_PROCESS
    floors: dict[str, FloorProcess] | None = None


class ProcessPlan(_CamelModel):
    """Per-building process plan.

    ``total_days`` is derived; the engine recomputes it on every change.
    """

    id: str | None = None
    building_id: str
    project_id: str = ""
    processes: dict[ProcessCategory, CategoryProcess] = Field(default_factory=dict)
    total_days: int = 0
    item_direct_work_days_overrides: dict[str, float] = Field(default_factory=dict)
    special_row_quantities: dict[str, dict[str, float]] = Field(default_factory=dict)

    # Basement preliminary works, informational only
    temporary_work_days: float | None = None
    earth_retention_work_days: float | None = None
    earthwork_work_days: float | None = None

    created_at: str | None = None
    updated_at: str | None = None

    def to_json(self) -> str:
        """Serialise to the persisted camelCase JSON shape."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class OverrideKey:
    """Structured key of the item override map.

    Floor labels are normalised (no core prefix), so the serialised form
    ``"<category>-<floorLabel>-<itemId>"`` splits unambiguously on the
    first two hyphens.
    """

    category: ProcessCategory
    floor_label: str
    item_id: str

    def serialize(self) -> str:
        return f"{self.category.value}-{self.floor_label}-{self.item_id}"

    @classmethod
    def parse(cls, text: str) -> OverrideKey | None:
        parts = text.split("-", 2)
        if len(parts) != 3 or not parts[2]:
            return None
        try:
            category = ProcessCategory(parts[0])
        except ValueError:
            return None
        return cls(category=category, floor_label=parts[1], item_id=parts[2])
