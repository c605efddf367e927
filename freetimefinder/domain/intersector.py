"""
Joint occupancy across several people at a single instant.
"""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Tuple

from .models import WeeklyTimeBlock
from .occupancy import is_occupied

BlocksById = Mapping[str, Sequence[WeeklyTimeBlock]]

STATUS_FREE = "free"
STATUS_PARTIAL = "partial"
STATUS_OCCUPIED = "occupied"


@dataclass(frozen=True)
class OccupancyClassification:
    """
    Partition of the selected people into free and occupied at one instant.

    Both tuples keep the selection order.
    """
    free: Tuple[str, ...]
    occupied: Tuple[str, ...]

    @property
    def all_free(self) -> bool:
        # Nobody selected is never "free for all".
        return not self.occupied and bool(self.free)

    @property
    def all_occupied(self) -> bool:
        return not self.free

    @property
    def status(self) -> str:
        if self.all_free:
            return STATUS_FREE
        if self.all_occupied:
            return STATUS_OCCUPIED
        return STATUS_PARTIAL


def unique_ids(selected_ids: Iterable[str]) -> List[str]:
    """Drop repeated ids while preserving the first occurrence order."""
    return list(dict.fromkeys(selected_ids))


def classify(
    schedules_by_id: BlocksById,
    selected_ids: Iterable[str],
    day: int,
    instant: int
) -> OccupancyClassification:
    """
    Split the selected ids into those free and those occupied at (day, instant).

    Each person is evaluated independently, so the cost is linear in the
    number of selected people. Every selected id must be present in
    ``schedules_by_id``; a missing id raises KeyError instead of being
    treated as an empty schedule.
    """
    free: List[str] = []
    occupied: List[str] = []

    for person_id in unique_ids(selected_ids):
        if is_occupied(schedules_by_id[person_id], day, instant):
            occupied.append(person_id)
        else:
            free.append(person_id)

    return OccupancyClassification(free=tuple(free), occupied=tuple(occupied))


def is_free_for_all(
    schedules_by_id: BlocksById,
    selected_ids: Iterable[str],
    day: int,
    instant: int
) -> bool:
    """Shortcut for ``classify(...).all_free``."""
    return classify(schedules_by_id, selected_ids, day, instant).all_free
