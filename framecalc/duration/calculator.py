"""Direct work-day calculation for catalog items.

Each item is computed in exactly one mode, chosen from its populated fields:

- ``FixedDays``: ``direct_work_days`` is set; quantity is ignored.
- ``EquipmentBased``: pump-car crews sized from the quantity.
- ``ProductivityBased``: crews sized from quantity per worker-day.
- ``NoDuration``: nothing to compute (contributes 0).

Item days are rounded up per item; a scope sum is floored once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from framecalc.models import ProcessModuleItem

# Float noise tolerance for ceil/floor (120 / 20 / 6 must stay 1, not 2)
_PRECISION = 9


@dataclass(frozen=True)
class FixedDays:
    days: float


@dataclass(frozen=True)
class EquipmentBased:
    reference: str
    calculation_base: float  # Quantity one equipment unit handles
    workers_per_unit: float
    daily_productivity: float


@dataclass(frozen=True)
class ProductivityBased:
    reference: str
    daily_productivity: float
    equipment_count: float = 1.0


@dataclass(frozen=True)
class NoDuration:
    pass


DurationMode = Union[FixedDays, EquipmentBased, ProductivityBased, NoDuration]


def mode_for(item: ProcessModuleItem) -> DurationMode:
    """Classify a catalog item into its duration mode."""
    if item.direct_work_days is not None:
        return FixedDays(days=item.direct_work_days)

    if (
        item.equipment_calculation_base is not None
        and item.equipment_workers_per_unit is not None
        and item.quantity_reference
    ):
        return EquipmentBased(
            reference=item.quantity_reference,
            calculation_base=item.equipment_calculation_base,
            workers_per_unit=item.equipment_workers_per_unit,
            daily_productivity=item.daily_productivity,
        )

    if item.quantity_reference and item.daily_productivity > 0:
        return ProductivityBased(
            reference=item.quantity_reference,
            daily_productivity=item.daily_productivity,
            equipment_count=item.equipment_count,
        )

    return NoDuration()


def round_up(value: float) -> int:
    """Ceiling that ignores binary float noise."""
    return math.ceil(round(value, _PRECISION))


def floor_sum(values) -> int:
    """Floor a scope sum once (2.4 + 2.4 + 2.4 -> 7)."""
    return math.floor(round(sum(values), _PRECISION))


def equipment_count(quantity: float, calculation_base: float, max_count: int | None = None) -> int:
    """Equipment units needed for a quantity, capped at ``max_count``.

    Returns 0 when there is nothing to place, 1 when the base is unusable.
    """
    if quantity <= 0:
        return 0
    if calculation_base <= 0:
        return 1
    count = max(1, round_up(quantity / calculation_base))
    if max_count is not None and max_count > 0:
        count = min(count, max_count)
    return count


def _days_for_crew(quantity: float, daily_productivity: float, daily_workers: float) -> float:
    if quantity <= 0 or daily_productivity <= 0 or daily_workers <= 0:
        return 0
    return round_up(quantity / daily_productivity / daily_workers)


def duration_for(mode: DurationMode, quantity: float, max_equipment_count: int | None = None) -> float:
    """Direct work days of one item for a resolved quantity."""
    if isinstance(mode, FixedDays):
        return mode.days

    if isinstance(mode, EquipmentBased):
        count = equipment_count(quantity, mode.calculation_base, max_equipment_count)
        daily_workers = count * mode.workers_per_unit
        return _days_for_crew(quantity, mode.daily_productivity, daily_workers)

    if isinstance(mode, ProductivityBased):
        total_workers = quantity / mode.daily_productivity if quantity > 0 else 0.0
        if total_workers <= 0 or mode.equipment_count <= 0:
            return 0
        daily_workers = total_workers / mode.equipment_count
        return _days_for_crew(quantity, mode.daily_productivity, daily_workers)

    return 0


@dataclass(frozen=True)
class ItemBreakdown:
    """Display figures of one catalog item on one floor."""

    item: ProcessModuleItem
    quantity: float
    equipment_count: int | None
    total_workers: int | None
    daily_input_workers: int | None
    direct_work_days: float
    computed_work_days: float
    overridden: bool = False

    @property
    def indirect_days(self) -> float:
        return self.item.indirect_days

    @property
    def total_work_days(self) -> int:
        """Direct plus indirect days, rounded up."""
        return round_up(self.direct_work_days + self.item.indirect_days)


def breakdown(
    item: ProcessModuleItem,
    quantity: float,
    max_equipment_count: int | None = None,
    override: float | None = None,
) -> ItemBreakdown:
    """Crew figures for one item.

    With an override, the overridden days are authoritative and the daily
    crew is re-derived from them.
    """
    mode = mode_for(item)
    computed = duration_for(mode, quantity, max_equipment_count)
    days = override if override is not None else computed

    count: int | None = None
    total_workers: int | None = None
    daily_workers: int | None = None

    if isinstance(mode, EquipmentBased):
        count = equipment_count(quantity, mode.calculation_base, max_equipment_count)
        daily_workers = round_up(count * mode.workers_per_unit)
        if mode.daily_productivity > 0:
            total_workers = round_up(quantity / mode.daily_productivity)
    elif isinstance(mode, ProductivityBased):
        total_workers = round_up(quantity / mode.daily_productivity)
        if override is not None and days > 0:
            daily_workers = round_up(total_workers / days)
        elif mode.equipment_count > 0:
            daily_workers = round_up(total_workers / mode.equipment_count)
    elif isinstance(mode, FixedDays) and item.daily_productivity > 0 and quantity > 0:
        total_workers = round_up(quantity / item.daily_productivity)
        if days > 0:
            daily_workers = round_up(total_workers / days)

    return ItemBreakdown(
        item=item,
        quantity=quantity,
        equipment_count=count,
        total_workers=total_workers,
        daily_input_workers=daily_workers,
        direct_work_days=days,
        computed_work_days=computed,
        overridden=override is not None,
    )
