"""
Application services for finding shared free time.

The service coordinates fetching schedules via a schedule client adapter and
delegates the actual availability calculation to the domain layer. This keeps
the CLI thin and improves testability by allowing the schedule dependency to
be replaced via a simple protocol.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from ..domain.exceptions import ScheduleAPIError
from ..domain.intersector import BlocksById, unique_ids
from ..domain.models import FreeSlot, OccupancyQuery, PersonSchedule, WeeklyTimeBlock
from ..domain.presentation import DEFAULT_GRID_HOURS, ComparisonGrid, comparison_grid, slots_listing
from ..domain.slot_merger import FreeSlotCalculator

logger = logging.getLogger(__name__)


class ScheduleClientProtocol(Protocol):
    """Protocol describing the schedule client behaviour needed by the service."""

    def get_schedules(self, person_ids: Sequence[str]) -> Dict[str, PersonSchedule]:
        """Return the weekly schedule per person id."""

    def get_group_member_ids(self, group_id: str) -> List[str]:
        """Return the member ids of a group."""


class FreeTimeFinderService:
    """
    Orchestrates schedule retrieval, free slot calculation and comparison.

    Every call fetches fresh schedule snapshots; nothing is cached between
    calls.
    """

    def __init__(
        self,
        schedule_client: ScheduleClientProtocol,
        calculator: FreeSlotCalculator,
        grid_hours: Sequence[int] = DEFAULT_GRID_HOURS,
    ) -> None:
        self._schedule_client = schedule_client
        self._calculator = calculator
        self._grid_hours = tuple(grid_hours)

    def fetch_schedules(self, person_ids: Sequence[str]) -> Dict[str, Tuple[WeeklyTimeBlock, ...]]:
        """
        Fetch the schedules of the requested people as engine input.

        Raises:
            ScheduleAPIError: If the client did not return a schedule for
                every requested person
        """
        requested = unique_ids(person_ids)
        schedules = self._schedule_client.get_schedules(requested)

        missing = [person_id for person_id in requested if person_id not in schedules]
        if missing:
            raise ScheduleAPIError(f"No schedule returned for: {', '.join(missing)}")

        logger.debug(
            "Fetched %d schedule(s) with %d block(s) in total",
            len(requested),
            sum(len(schedules[person_id].blocks) for person_id in requested),
        )

        return {person_id: schedules[person_id].blocks for person_id in requested}

    def find_common_slots(
        self,
        person_ids: Sequence[str],
        min_duration_minutes: int = 0,
    ) -> List[FreeSlot]:
        """Retrieve schedules and compute the slots when everyone is free."""
        blocks_by_id = self.fetch_schedules(person_ids)
        return self.calculate_slots(blocks_by_id, person_ids, min_duration_minutes)

    def find_group_slots(self, group_id: str, min_duration_minutes: int = 0) -> List[FreeSlot]:
        """Common free slots of all members of a group."""
        member_ids = self._schedule_client.get_group_member_ids(group_id)
        logger.info("Group %s has %d member(s)", group_id, len(member_ids))

        if not member_ids:
            return []

        return self.find_common_slots(member_ids, min_duration_minutes)

    def calculate_slots(
        self,
        blocks_by_id: BlocksById,
        person_ids: Sequence[str],
        min_duration_minutes: int = 0,
    ) -> List[FreeSlot]:
        """Calculate common free slots from already fetched schedules."""
        per_day = self._calculator.free_slots_by_day(blocks_by_id, person_ids)
        return [
            slot
            for slot in slots_listing(per_day)
            if slot.duration_minutes() >= min_duration_minutes
        ]

    def compare(
        self,
        person_ids: Sequence[str],
        now: Optional[OccupancyQuery] = None,
    ) -> ComparisonGrid:
        """Build the day x hour occupancy grid for the selected people."""
        blocks_by_id = self.fetch_schedules(person_ids)
        return comparison_grid(
            blocks_by_id,
            person_ids,
            hours=self._grid_hours,
            days=self._calculator.scan_window.days,
            now=now,
        )
