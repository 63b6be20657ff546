"""FrameCalc exception types.

Calculation code never raises these on its steady-state path: malformed
references, unknown catalog combinations and missing quantities all resolve
to zero. They are raised at the edges only (catalog loading, plan storage).
"""

from __future__ import annotations


class FrameCalcError(Exception):
    """Base class for FrameCalc errors."""


class CatalogConfigurationError(FrameCalcError):
    """Process module catalog file is invalid or missing."""


class PlanStoreError(FrameCalcError):
    """A process plan could not be read from or written to its store."""
