"""Floor taxonomy: classify a building's raw floor list into canonical groups.

Floor labels may carry a structural-core tag (``코어1-3F``). Every label is
normalised before classification, and floors that normalise to the same label
are treated as one floor (first encountered wins).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from framecalc.models import Building, Floor, FloorClass, LevelType

logger = structlog.get_logger(__name__)

_CORE_PREFIX = re.compile(r"^코어\d+-", re.ASCII)
_PH_LABEL = re.compile(r"^PH(\d+)$", re.IGNORECASE | re.ASCII)
_ROOFTOP_LABEL = re.compile(r"^옥탑(\d+)층?$", re.ASCII)
_BASEMENT_LABEL = re.compile(r"^B(\d+)$", re.IGNORECASE | re.ASCII)
_RANGE_LABEL = re.compile(r"(\d+)~(\d+)F", re.ASCII)
_FLOOR_NUMBER = re.compile(r"(\d+)F|(\d+)층", re.ASCII)
_STANDARD_SUFFIX = re.compile(r"\s*기준층\s*$")


def strip_core_prefix(label: str) -> str:
    """Remove a leading ``코어N-`` structural-core tag."""
    return _CORE_PREFIX.sub("", label.strip())


def normalize_label(label: str) -> str:
    """Canonical floor label: no core tag, rooftop spelled ``옥탑N``.

    >>> normalize_label("코어2-PH1")
    '옥탑1'
    """
    cleaned = strip_core_prefix(label)
    match = _PH_LABEL.match(cleaned) or _ROOFTOP_LABEL.match(cleaned)
    if match:
        return f"옥탑{int(match.group(1))}"
    return cleaned


def rooftop_index(label: str) -> int | None:
    """N of a rooftop label (``옥탑N``/``PHN``), None otherwise."""
    match = _ROOFTOP_LABEL.match(normalize_label(label))
    return int(match.group(1)) if match else None


def basement_index(label: str) -> int | None:
    """N of a basement label (``BN``), None otherwise."""
    match = _BASEMENT_LABEL.match(strip_core_prefix(label))
    return int(match.group(1)) if match else None


def floor_number_of(label: str) -> int | None:
    """Above-grade floor number encoded in a label (``3F``, ``3층``)."""
    match = _FLOOR_NUMBER.search(strip_core_prefix(label))
    if not match:
        return None
    return int(match.group(1) or match.group(2))


def range_bounds(floor: Floor) -> tuple[int, int] | None:
    """Inclusive floor-number range of a range label like ``2~14F 기준층``."""
    cleaned = _STANDARD_SUFFIX.sub("", strip_core_prefix(floor.floor_label))
    match = _RANGE_LABEL.search(cleaned)
    if not match:
        return None
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        start, end = end, start
    return start, end


def expand_range(floor: Floor, exclude: set[int] | frozenset[int] = frozenset()) -> list[Floor]:
    """Expand a range floor into one synthetic floor per integer in range.

    Synthetic floors are labelled ``<n>F`` with id ``<floor.id>-<n>`` and
    remember the range floor they came from.
    """
    bounds = range_bounds(floor)
    if bounds is None:
        return [floor]

    start, end = bounds
    return [
        floor.model_copy(
            update={
                "id": f"{floor.id}-{number}",
                "floor_label": f"{number}F",
                "floor_number": number,
                "range_floor_id": floor.id,
            }
        )
        for number in range(start, end + 1)
        if number not in exclude
    ]


def _relabel(floor: Floor, label: str) -> Floor:
    if floor.floor_label == label:
        return floor
    return floor.model_copy(update={"floor_label": label})


def _dedupe(floors: list[Floor], group: str) -> list[Floor]:
    seen: set[str] = set()
    unique: list[Floor] = []
    for floor in floors:
        if floor.floor_label in seen:
            logger.debug(
                "Duplicate floor dropped",
                group=group,
                floor_label=floor.floor_label,
                floor_id=floor.id,
            )
            continue
        seen.add(floor.floor_label)
        unique.append(floor)
    return unique


@dataclass(frozen=True)
class FloorTaxonomy:
    """Canonical, de-duplicated floor sequences of one building.

    Every label in these sequences is normalised.
    """

    basement: tuple[Floor, ...] = ()  # B1, B2, ... (aggregation order)
    standard: tuple[Floor, ...] = ()  # ascending, ranges expanded
    setting: tuple[Floor, ...] = ()  # setting and normal floors, ascending
    rooftop: tuple[Floor, ...] = ()  # 옥탑1, 옥탑2, ...
    ph: tuple[Floor, ...] = ()
    top_floor_numbers: frozenset[int] = field(default_factory=frozenset)

    @property
    def basement_display(self) -> tuple[Floor, ...]:
        """Basement floors deepest first (B2, B1)."""
        return tuple(reversed(self.basement))

    @property
    def standard_display(self) -> tuple[Floor, ...]:
        """Standard floors highest first."""
        return tuple(reversed(self.standard))

    @property
    def setting_display(self) -> tuple[Floor, ...]:
        return tuple(reversed(self.setting))

    def basement_floor(self, index: int) -> Floor | None:
        """Basement floor ``B<index>`` (1-based), None when absent."""
        for floor in self.basement:
            if basement_index(floor.floor_label) == index:
                return floor
        if 0 < index <= len(self.basement):
            return self.basement[index - 1]
        return None

    def rooftop_floor(self, index: int) -> Floor | None:
        """Rooftop floor ``옥탑<index>`` (1-based), None when absent."""
        if 0 < index <= len(self.rooftop):
            return self.rooftop[index - 1]
        return None


def _basement_sort_key(floor: Floor) -> tuple[int, int]:
    index = basement_index(floor.floor_label)
    # Unlabelled basements fall back to depth from floor number (-1 -> 1)
    return (index if index is not None else abs(floor.floor_number), floor.floor_number)


def _standard_floors(floors: list[Floor], top_numbers: frozenset[int]) -> list[Floor]:
    by_number: dict[int, Floor] = {}
    for floor in floors:
        if floor.floor_class not in (FloorClass.STANDARD, FloorClass.TOP):
            continue

        if range_bounds(floor) is not None:
            candidates = expand_range(floor, exclude=top_numbers)
        else:
            number = floor_number_of(floor.floor_label)
            if number is None:
                candidates = [_relabel(floor, normalize_label(floor.floor_label))]
            else:
                candidates = [
                    floor.model_copy(
                        update={
                            "id": f"{floor.id}-{number}",
                            "floor_label": f"{number}F",
                            "floor_number": number,
                        }
                    )
                ]

        for candidate in candidates:
            if candidate.floor_number in by_number:
                logger.debug(
                    "Duplicate standard floor dropped",
                    floor_number=candidate.floor_number,
                    floor_id=candidate.id,
                )
                continue
            by_number[candidate.floor_number] = candidate

    return sorted(by_number.values(), key=lambda f: f.floor_number)


def resolve_floors(building: Building) -> FloorTaxonomy:
    """Classify ``building.floors`` into ordered canonical groups."""
    floors = list(building.floors)

    top_numbers = frozenset(
        number
        for floor in floors
        if floor.floor_class == FloorClass.TOP and range_bounds(floor) is None
        for number in [floor_number_of(floor.floor_label)]
        if number is not None
    )

    basement = [
        _relabel(f, strip_core_prefix(f.floor_label))
        for f in floors
        if (f.level_type == LevelType.BELOW_GRADE or f.floor_class == FloorClass.BASEMENT)
        and f.floor_class != FloorClass.FOUNDATION
    ]
    basement.sort(key=_basement_sort_key)

    setting = [
        _relabel(f, strip_core_prefix(f.floor_label))
        for f in floors
        if f.floor_class in (FloorClass.SETTING, FloorClass.NORMAL)
        and f.level_type == LevelType.ABOVE_GRADE
    ]
    setting.sort(key=lambda f: f.floor_number)

    rooftop = [
        _relabel(f, normalize_label(f.floor_label))
        for f in floors
        if f.floor_class == FloorClass.ROOFTOP
        or (f.floor_class != FloorClass.PH and rooftop_index(f.floor_label) is not None)
    ]
    rooftop.sort(key=lambda f: (rooftop_index(f.floor_label) or 0, f.floor_number))

    ph = [
        _relabel(f, normalize_label(f.floor_label))
        for f in floors
        if f.floor_class == FloorClass.PH
    ]
    ph.sort(key=lambda f: f.floor_number)

    return FloorTaxonomy(
        basement=tuple(_dedupe(basement, "basement")),
        standard=tuple(_standard_floors(floors, top_numbers)),
        setting=tuple(_dedupe(setting, "setting")),
        rooftop=tuple(_dedupe(rooftop, "rooftop")),
        ph=tuple(_dedupe(ph, "ph")),
        top_floor_numbers=top_numbers,
    )
