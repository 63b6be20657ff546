"""Building key figures shown alongside the process plan."""

from __future__ import annotations

from pydantic import BaseModel, Field

from framecalc.models import Building


class CoreUnits(BaseModel):
    core_number: int
    units: int


class BuildingSummary(BaseModel):
    """Unit and floor counts of one building."""

    building_id: str
    building_name: str = ""
    total_units: int = 0
    core_count: int = 1
    pilotis_count: int = 0
    ground_floors: int = 0
    unit_composition: str = ""
    core_units: list[CoreUnits] = Field(default_factory=list)


def summarize_building(building: Building) -> BuildingSummary:
    """Derive unit counts from the unit-type patterns.

    Units are counted per core from the patterns, then units excluded for
    pilotis are subtracted (per-core counts take precedence over the single
    building-wide count). Without patterns the declared total is used.
    """
    meta = building.meta
    floor_count = meta.floor_count

    total_units = meta.total_units
    per_core: dict[int, int] = {}
    if meta.unit_type_pattern:
        for pattern in meta.unit_type_pattern:
            core = pattern.core_number or 1
            per_core[core] = per_core.get(core, 0) + (pattern.to - pattern.from_ + 1)
        total_units = sum(per_core.values())

        if floor_count.core_pilotis_counts:
            total_units -= sum(count or 0 for count in floor_count.core_pilotis_counts)
        elif floor_count.pilotis_count:
            total_units -= floor_count.pilotis_count

    if floor_count.core_ground_floors:
        ground_floors = sum(count or 0 for count in floor_count.core_ground_floors)
    else:
        ground_floors = floor_count.ground or 0

    composition = ", ".join(
        f"코어{pattern.core_number or 1} {pattern.from_}~{pattern.to}호 {pattern.type}"
        for pattern in meta.unit_type_pattern
    )

    return BuildingSummary(
        building_id=building.id,
        building_name=building.building_name,
        total_units=total_units,
        core_count=meta.core_count,
        pilotis_count=floor_count.pilotis_count or 0,
        ground_floors=ground_floors,
        unit_composition=composition,
        core_units=[
            CoreUnits(core_number=core, units=units) for core, units in sorted(per_core.items())
        ],
    )
