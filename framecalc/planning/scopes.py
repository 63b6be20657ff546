"""Category scopes and basement special rows."""

from __future__ import annotations

import re
from enum import Enum

from framecalc.models import ProcessCategory


class CategoryScope(str, Enum):
    """Which categories a plan aggregates.

    The full-building plan and the basement-only plan share one engine; the
    scope only selects the active categories.
    """

    FULL_BUILDING = "full"
    BASEMENT_ONLY = "basement"

    @property
    def categories(self) -> tuple[ProcessCategory, ...]:
        return _SCOPE_CATEGORIES[self]


_SCOPE_CATEGORIES = {
    CategoryScope.FULL_BUILDING: (
        ProcessCategory.STRIP,
        ProcessCategory.FOUNDATION,
        ProcessCategory.BASEMENT,
        ProcessCategory.SETTING,
        ProcessCategory.STANDARD,
        ProcessCategory.ROOFTOP,
    ),
    CategoryScope.BASEMENT_ONLY: (
        ProcessCategory.STRIP,
        ProcessCategory.FOUNDATION,
        ProcessCategory.BASEMENT,
    ),
}

# Categories summed floor by floor; the rest are single scalars
PER_FLOOR_CATEGORIES = frozenset(
    {
        ProcessCategory.BASEMENT,
        ProcessCategory.SETTING,
        ProcessCategory.STANDARD,
        ProcessCategory.ROOFTOP,
    }
)

# Categories whose process type may differ per floor
PER_FLOOR_PROCESS_TYPE_CATEGORIES = frozenset(
    {ProcessCategory.BASEMENT, ProcessCategory.ROOFTOP}
)


class SpecialRowKind(str, Enum):
    """Basement sections planned separately from their parent floor."""

    PARKING = "주차장"
    TEMPORARY_FACILITY = "3단 가시설 적용부"


_SPECIAL_ROW = re.compile(r"^(B[0-9]+)\s+(주차장|3단\s+가시설\s+적용부)")


def special_row_label(parent_label: str, kind: SpecialRowKind) -> str:
    """``"B1 주차장"``; also the key into ``special_row_quantities``."""
    return f"{parent_label} {kind.value}"


def parse_special_row(label: str | None) -> tuple[str, SpecialRowKind] | None:
    """Split a special-row label into its parent floor and kind."""
    if not label:
        return None
    match = _SPECIAL_ROW.match(label.strip())
    if not match:
        return None
    kind = SpecialRowKind.PARKING if match.group(2) == "주차장" else SpecialRowKind.TEMPORARY_FACILITY
    return match.group(1), kind
