"""Quantity resolution against a building's floor trade records.

Rows of the quantity sheet map to floors through an explicit table:

====== =====================================================
Row    Meaning
====== =====================================================
6      strip concrete (sum of the ``버림`` trade group)
7      foundation (sum of the ``기초`` trade group)
8      basement B2
9      basement B1
11-25  above-grade floor ``row - 10`` (setting/normal floor
       first, then standard floor including ranges)
26-28  rooftop floor ``옥탑(row - 25)``
====== =====================================================

Every lookup is total: absent floors, trades or fields resolve to ``0``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum

import structlog

from framecalc.floors.taxonomy import (
    FloorTaxonomy,
    floor_number_of,
    normalize_label,
    range_bounds,
    resolve_floors,
)
from framecalc.models import (
    APARTMENT_TRADE_GROUP,
    Building,
    Floor,
    FloorClass,
    FloorTrade,
    MaterialField,
)
from framecalc.quantities.reference import (
    QuantityReference,
    parse_reference,
    split_composite,
)

logger = structlog.get_logger(__name__)

STRIP_TRADE_GROUP = "버림"
FOUNDATION_TRADE_GROUP = "기초"

STRIP_ROW = 6
FOUNDATION_ROW = 7
ABOVE_GRADE_ROW_OFFSET = 10
ABOVE_GRADE_ROWS = range(11, 26)
ROOFTOP_ROW_OFFSET = 25
ROOFTOP_ROWS = range(26, 29)
_BASEMENT_ROWS = {8: 2, 9: 1}


class RowKind(str, Enum):
    STRIP = "strip"
    FOUNDATION = "foundation"
    BASEMENT = "basement"
    ABOVE_GRADE = "above_grade"
    ROOFTOP = "rooftop"


@dataclass(frozen=True)
class FloorRef:
    """Structured target of a quantity-sheet row.

    ``index`` is the basement depth (B1 -> 1), the above-grade floor number,
    or the rooftop number; it is 0 for the trade-group rows.
    """

    kind: RowKind
    index: int = 0


def floor_ref_for_row(row: int) -> FloorRef | None:
    """Map a sheet row to the floor it describes, None for unmapped rows."""
    if row == STRIP_ROW:
        return FloorRef(RowKind.STRIP)
    if row == FOUNDATION_ROW:
        return FloorRef(RowKind.FOUNDATION)
    if row in _BASEMENT_ROWS:
        return FloorRef(RowKind.BASEMENT, _BASEMENT_ROWS[row])
    if row in ABOVE_GRADE_ROWS:
        return FloorRef(RowKind.ABOVE_GRADE, row - ABOVE_GRADE_ROW_OFFSET)
    if row in ROOFTOP_ROWS:
        return FloorRef(RowKind.ROOFTOP, row - ROOFTOP_ROW_OFFSET)
    return None


def row_for(ref: FloorRef) -> int | None:
    """Inverse of ``floor_ref_for_row``; None when the sheet has no such row."""
    if ref.kind == RowKind.STRIP:
        return STRIP_ROW
    if ref.kind == RowKind.FOUNDATION:
        return FOUNDATION_ROW
    if ref.kind == RowKind.BASEMENT:
        for row, depth in _BASEMENT_ROWS.items():
            if depth == ref.index:
                return row
        return None
    if ref.kind == RowKind.ABOVE_GRADE:
        row = ref.index + ABOVE_GRADE_ROW_OFFSET
        return row if row in ABOVE_GRADE_ROWS else None
    if ref.kind == RowKind.ROOFTOP:
        row = ref.index + ROOFTOP_ROW_OFFSET
        return row if row in ROOFTOP_ROWS else None
    return None


_GROUP_ROWS = {
    RowKind.STRIP: STRIP_TRADE_GROUP,
    RowKind.FOUNDATION: FOUNDATION_TRADE_GROUP,
}


class QuantityResolver:
    """Resolve quantities of one building snapshot.

    The floor taxonomy and a floor-id index of trade records are built once
    per resolver; create a new resolver when the building changes.
    """

    def __init__(self, building: Building, taxonomy: FloorTaxonomy | None = None):
        self.building = building
        self.taxonomy = taxonomy or resolve_floors(building)
        self._floors_by_id = {floor.id: floor for floor in building.floors}
        self._trades_by_floor: dict[str, list[FloorTrade]] = defaultdict(list)
        for trade in building.floor_trades:
            self._trades_by_floor[trade.floor_id].append(trade)

    # ------------------------------------------------------------------
    # Reference lookups
    # ------------------------------------------------------------------

    def resolve_by_reference(self, reference: str | None) -> float:
        """Quantity named by a reference string, ``0`` when unresolvable."""
        parts = split_composite(reference)
        if len(parts) > 1:
            return sum(self.resolve_by_reference(part) for part in parts)

        parsed = parse_reference(reference)
        if parsed is None:
            if reference:
                logger.debug("Unparseable quantity reference", reference=reference)
            return 0.0
        return self.resolve(parsed)

    def resolve(self, reference: QuantityReference) -> float:
        """Quantity of a parsed reference (ratio applied)."""
        field = reference.field
        target = floor_ref_for_row(reference.row)
        if field is None or target is None:
            return 0.0

        group = _GROUP_ROWS.get(target.kind)
        if group is not None:
            return self.trade_group_total(group, field) * reference.ratio

        located = self.locate(target)
        if located is None:
            return 0.0
        label, range_floor_id = located
        return self.resolve_from_floor(label, field, range_floor_id) * reference.ratio

    def locate(self, target: FloorRef) -> tuple[str, str | None] | None:
        """Floor label (and range floor id) a floor-level row points at."""
        taxonomy = self.taxonomy
        if target.kind == RowKind.BASEMENT:
            floor = taxonomy.basement_floor(target.index)
            return (floor.floor_label, None) if floor else None

        if target.kind == RowKind.ROOFTOP:
            floor = taxonomy.rooftop_floor(target.index)
            return (floor.floor_label, None) if floor else None

        if target.kind == RowKind.ABOVE_GRADE:
            for floor in taxonomy.setting:
                if floor_number_of(floor.floor_label) == target.index:
                    return floor.floor_label, None
            for floor in taxonomy.standard:
                if floor.floor_number == target.index:
                    return floor.floor_label, floor.range_floor_id
        return None

    # ------------------------------------------------------------------
    # Floor lookups
    # ------------------------------------------------------------------

    def resolve_from_floor(
        self,
        floor_label: str,
        field: MaterialField,
        range_floor_id: str | None = None,
        sub_field: str | None = None,
    ) -> float:
        """Quantity of one material field on one floor.

        The floor is matched by exact label, then by normalised label, then
        (without ``range_floor_id``) by a standard-floor range containing the
        floor number. Trades stored per expanded floor use the synthetic id
        ``<rangeFloorId>-<n>F``.
        """
        synthetic_id: str | None = None
        if range_floor_id:
            range_floor = self._floors_by_id.get(range_floor_id)
            number = floor_number_of(floor_label)
            if range_floor is not None and number is not None:
                synthetic_id = f"{range_floor.id}-{number}F"

        floor = self._find_floor(floor_label)

        if floor is None and not range_floor_id:
            number = floor_number_of(floor_label)
            range_floor = self._find_range_floor(number) if number is not None else None
            if range_floor is not None:
                synthetic_id = f"{range_floor.id}-{number}F"

        candidates = [floor.id] if floor is not None else []
        if synthetic_id:
            candidates.append(synthetic_id)

        for floor_id in candidates:
            trade = self._trade_for(floor_id)
            if trade is not None:
                return trade.quantity(field, sub_field)
        return 0.0

    def trade_group_total(self, trade_group: str, field: MaterialField) -> float:
        """Sum of a field across every trade record of a trade group."""
        return sum(
            trade.quantity(field)
            for trade in self.building.floor_trades
            if trade.trade_group == trade_group
        )

    def _find_floor(self, floor_label: str) -> Floor | None:
        for floor in self.building.floors:
            if floor.floor_label == floor_label:
                return floor

        wanted = normalize_label(floor_label)
        for floor in self.building.floors:
            if normalize_label(floor.floor_label) == wanted:
                return floor
        return None

    def _find_range_floor(self, number: int) -> Floor | None:
        for floor in self.building.floors:
            if floor.floor_class != FloorClass.STANDARD:
                continue
            bounds = range_bounds(floor)
            if bounds and bounds[0] <= number <= bounds[1]:
                return floor
        return None

    def _trade_for(self, floor_id: str) -> FloorTrade | None:
        trades = self._trades_by_floor.get(floor_id)
        if not trades:
            return None
        for trade in trades:
            if trade.trade_group == APARTMENT_TRADE_GROUP:
                return trade
        return trades[0]


def resolve_by_reference(building: Building, reference: str | None) -> float:
    """Convenience wrapper around ``QuantityResolver.resolve_by_reference``."""
    return QuantityResolver(building).resolve_by_reference(reference)


def resolve_from_floor(
    building: Building,
    floor_label: str,
    field: MaterialField,
    range_floor_id: str | None = None,
) -> float:
    """Convenience wrapper around ``QuantityResolver.resolve_from_floor``."""
    return QuantityResolver(building).resolve_from_floor(floor_label, field, range_floor_id)
