"""Quantity references and resolution against floor trade records."""

from framecalc.quantities.reference import (
    QuantityReference,
    format_reference,
    parse_reference,
)
from framecalc.quantities.resolver import (
    FloorRef,
    QuantityResolver,
    RowKind,
    floor_ref_for_row,
    resolve_by_reference,
    resolve_from_floor,
    row_for,
)

__all__ = [
    "FloorRef",
    "QuantityReference",
    "QuantityResolver",
    "RowKind",
    "floor_ref_for_row",
    "format_reference",
    "parse_reference",
    "resolve_by_reference",
    "resolve_from_floor",
    "row_for",
]
