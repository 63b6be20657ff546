"""Floor classification and label normalisation."""

from framecalc.floors.taxonomy import (
    FloorTaxonomy,
    expand_range,
    normalize_label,
    resolve_floors,
    strip_core_prefix,
)

__all__ = [
    "FloorTaxonomy",
    "expand_range",
    "normalize_label",
    "resolve_floors",
    "strip_core_prefix",
]
