"""
Universe core: grouping transactions into galaxies and laying them out in space.
"""

from backend_celestia.universe.grouping import (
    GroupingConfig,
    dedupe_transactions,
    group_records,
    group_transactions,
)
from backend_celestia.universe.layout import LayoutConfig, SpiralLayout
from backend_celestia.universe.models import Galaxy, GroupingResult, Position, Transaction
from backend_celestia.universe.session import IngestReport, Placement, UniverseSession

__all__ = [
    "Galaxy",
    "GroupingConfig",
    "GroupingResult",
    "IngestReport",
    "LayoutConfig",
    "Placement",
    "Position",
    "SpiralLayout",
    "Transaction",
    "UniverseSession",
    "dedupe_transactions",
    "group_records",
    "group_transactions",
]
