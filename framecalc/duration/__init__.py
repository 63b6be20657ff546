"""Duration calculation for catalog work items."""

from framecalc.duration.calculator import (
    DurationMode,
    EquipmentBased,
    FixedDays,
    ItemBreakdown,
    NoDuration,
    ProductivityBased,
    breakdown,
    duration_for,
    equipment_count,
    floor_sum,
    mode_for,
    round_up,
)

__all__ = [
    "DurationMode",
    "EquipmentBased",
    "FixedDays",
    "ItemBreakdown",
    "NoDuration",
    "ProductivityBased",
    "breakdown",
    "duration_for",
    "equipment_count",
    "floor_sum",
    "mode_for",
    "round_up",
]
