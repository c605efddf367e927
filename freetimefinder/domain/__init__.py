"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import InvalidBlockError
from .intersector import OccupancyClassification, classify
from .models import FreeSlot, OccupancyQuery, PersonSchedule, WeeklyTimeBlock
from .occupancy import is_occupied, occupying_block
from .presentation import ComparisonGrid, GridCell, comparison_grid, slots_listing
from .slot_merger import FreeSlotCalculator, ScanWindow, free_slots_for_day

__all__ = [
    "InvalidBlockError",
    "OccupancyClassification",
    "classify",
    "FreeSlot",
    "OccupancyQuery",
    "PersonSchedule",
    "WeeklyTimeBlock",
    "is_occupied",
    "occupying_block",
    "ComparisonGrid",
    "GridCell",
    "comparison_grid",
    "slots_listing",
    "FreeSlotCalculator",
    "ScanWindow",
    "free_slots_for_day",
]
