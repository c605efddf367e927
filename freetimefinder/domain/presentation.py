"""
Mapping of engine results into the shapes consumed by the CLI and API callers.

Shape A is the flat "slots" listing of common free windows. Shape B is the
day x hour comparison grid with per-person labels for occupied cells.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .intersector import BlocksById, classify, unique_ids
from .models import FreeSlot, OccupancyQuery, format_hhmm
from .occupancy import occupying_block
from .slot_merger import ALL_DAYS

DEFAULT_GRID_HOURS = tuple(range(8, 23))


def slot_to_dict(slot: FreeSlot) -> Dict[str, Any]:
    return {"dayOfWeek": slot.day_of_week, "start": slot.start, "end": slot.end}


def slots_listing(slots_by_day: Dict[int, List[FreeSlot]]) -> List[FreeSlot]:
    """Flatten per-day results into one list ordered by day, then start."""
    return [
        slot
        for day in sorted(slots_by_day)
        for slot in sorted(slots_by_day[day], key=lambda s: s.start_minutes)
    ]


def slots_payload(slots: Iterable[FreeSlot]) -> List[Dict[str, Any]]:
    """Serialise slots as ``{dayOfWeek, start, end}`` triples."""
    return [slot_to_dict(slot) for slot in slots]


@dataclass(frozen=True)
class GridCell:
    """One (day, hour) cell of the comparison grid."""
    day_of_week: int
    hour: int
    status: str
    free_ids: Tuple[str, ...]
    occupied_ids: Tuple[str, ...]
    labels: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    is_now: bool = False

    @property
    def time(self) -> str:
        return format_hhmm(self.hour * 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "hour": self.time,
            "status": self.status,
            "freeIds": list(self.free_ids),
            "occupiedIds": list(self.occupied_ids),
            "labels": dict(self.labels),
            "isNow": self.is_now,
        }


@dataclass(frozen=True)
class ComparisonGrid:
    """Occupancy of the selected people for every displayed (day, hour)."""
    selected_ids: Tuple[str, ...]
    days: Tuple[int, ...]
    hours: Tuple[int, ...]
    cells: Dict[Tuple[int, int], GridCell] = field(compare=False, hash=False)

    def cell(self, day_of_week: int, hour: int) -> GridCell:
        return self.cells[(day_of_week, hour)]

    def rows(self) -> List[Tuple[int, List[GridCell]]]:
        """Rows by hour, each holding one cell per day."""
        return [(hour, [self.cell(day, hour) for day in self.days]) for hour in self.hours]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectedIds": list(self.selected_ids),
            "cells": [
                self.cell(day, hour).to_dict()
                for hour in self.hours
                for day in self.days
            ],
        }


def comparison_grid(
    schedules_by_id: BlocksById,
    selected_ids: Iterable[str],
    hours: Sequence[int] = DEFAULT_GRID_HOURS,
    days: Sequence[int] = ALL_DAYS,
    now: Optional[OccupancyQuery] = None
) -> ComparisonGrid:
    """
    Build the day x hour comparison grid.

    Each cell is evaluated at the top of its hour. ``now`` is supplied by the
    caller and only used to flag the matching cell.
    """
    selected = tuple(unique_ids(selected_ids))
    cells: Dict[Tuple[int, int], GridCell] = {}

    for day in days:
        for hour in hours:
            instant = hour * 60
            result = classify(schedules_by_id, selected, day, instant)

            labels: Dict[str, str] = {}
            for person_id in result.occupied:
                block = occupying_block(schedules_by_id[person_id], day, instant)
                if block is not None:
                    labels[person_id] = block.display_label()

            cells[(day, hour)] = GridCell(
                day_of_week=day,
                hour=hour,
                status=result.status,
                free_ids=result.free,
                occupied_ids=result.occupied,
                labels=labels,
                is_now=now is not None and now.day_of_week == day and now.hour == hour,
            )

    return ComparisonGrid(
        selected_ids=selected,
        days=tuple(days),
        hours=tuple(hours),
        cells=cells,
    )
