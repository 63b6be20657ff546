"""Spreadsheet-style quantity references ("D6", "F8*0.45", "E14+E16").

A reference names a material column and a quantity-sheet row, optionally
scaled by a ratio. Columns map to material fields; rows map to floors via
``framecalc.quantities.resolver``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from framecalc.models import MaterialField

REFERENCE_PATTERN = re.compile(r"^([A-Z])(\d+)(?:\*([\d.]+))?$", re.ASCII)

COLUMN_FIELDS: dict[str, MaterialField] = {
    "B": MaterialField.GANG_FORM,
    "C": MaterialField.AL_FORM,
    "D": MaterialField.FORMWORK,
    "E": MaterialField.STRIP_CLEAN,
    "F": MaterialField.REBAR,
    "G": MaterialField.CONCRETE,
}


@dataclass(frozen=True)
class QuantityReference:
    column: str
    row: int
    ratio: float = 1.0

    @property
    def field(self) -> MaterialField | None:
        """Material field of the column, None for unmapped columns."""
        return COLUMN_FIELDS.get(self.column)

    def with_row(self, row: int) -> QuantityReference:
        """Same column and ratio, re-targeted at another row."""
        return QuantityReference(column=self.column, row=row, ratio=self.ratio)


def parse_reference(text: str | None) -> QuantityReference | None:
    """Parse a single reference; None when it does not match the grammar."""
    if not text:
        return None
    match = REFERENCE_PATTERN.match(text.strip())
    if not match:
        return None

    column, row, ratio_text = match.groups()
    ratio = 1.0
    if ratio_text:
        try:
            ratio = float(ratio_text)
        except ValueError:
            # "1.2.3" passes the character class but is not a number
            return None
    return QuantityReference(column=column, row=int(row), ratio=ratio)


def split_composite(text: str | None) -> list[str]:
    """Parts of a composite reference ("E14+E16" -> ["E14", "E16"])."""
    if not text:
        return []
    return [part.strip() for part in text.split("+") if part.strip()]


def _format_ratio(ratio: float) -> str:
    text = repr(float(ratio))
    if "e" in text or "E" in text:
        # Positional notation with every significant digit kept
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_reference(reference: QuantityReference) -> str:
    """Inverse of ``parse_reference``; the ratio is omitted when it is 1."""
    text = f"{reference.column}{reference.row}"
    if reference.ratio != 1:
        text += f"*{_format_ratio(reference.ratio)}"
    return text
