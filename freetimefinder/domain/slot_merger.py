"""
Core business logic for deriving common free slots from weekly schedules.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from .intersector import BlocksById, unique_ids
from .models import MINUTES_PER_DAY, FreeSlot, WeeklyTimeBlock, format_hhmm, parse_hhmm
from .occupancy import is_occupied

ALL_DAYS = (1, 2, 3, 4, 5, 6, 7)


def _validate_window(granularity_minutes: int, day_start_minutes: int, day_end_minutes: int) -> None:
    if granularity_minutes <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity_minutes}")
    if not 0 <= day_start_minutes < day_end_minutes <= MINUTES_PER_DAY:
        raise ValueError(
            f"Scan window {day_start_minutes}-{day_end_minutes} must satisfy "
            f"0 <= start < end <= {MINUTES_PER_DAY}"
        )


def free_slots_for_day(
    schedules_by_id: BlocksById,
    selected_ids: Iterable[str],
    day: int,
    granularity_minutes: int,
    day_start_minutes: int,
    day_end_minutes: int
) -> List[FreeSlot]:
    """
    Collapse the sampled free/busy timeline of one day into free slots.

    Algorithm:
    1. Sample "everyone free" at day_start, day_start + g, ... while < day_end
    2. Walk the samples and group consecutive free ones into runs
    3. Each run ends at the sample boundary after its last free sample,
       clamped to day_end

    Example (30-minute samples, 08:00-12:00):
    A busy 09:00-10:30, B busy 10:00-11:00
    Result: [08:00-09:00, 11:00-12:00]

    An empty selection yields no slots.
    """
    _validate_window(granularity_minutes, day_start_minutes, day_end_minutes)

    selected = unique_ids(selected_ids)
    if not selected:
        return []

    # Only the blocks on this day can occupy any sample.
    day_blocks: List[Sequence[WeeklyTimeBlock]] = [
        [block for block in schedules_by_id[person_id] if block.day_of_week == day]
        for person_id in selected
    ]

    slots: List[FreeSlot] = []
    run_start: Optional[int] = None

    for instant in range(day_start_minutes, day_end_minutes, granularity_minutes):
        everyone_free = not any(is_occupied(blocks, day, instant) for blocks in day_blocks)

        if everyone_free and run_start is None:
            run_start = instant
        elif not everyone_free and run_start is not None:
            slots.append(FreeSlot(day_of_week=day, start_minutes=run_start, end_minutes=instant))
            run_start = None

    if run_start is not None:
        slots.append(FreeSlot(day_of_week=day, start_minutes=run_start, end_minutes=day_end_minutes))

    return slots


@dataclass(frozen=True)
class ScanWindow:
    """
    Sampling configuration for free slot searches.

    Defaults match the group "common free slots" view: hourly samples
    between 08:00 and 22:00 on every day of the week.
    """
    granularity_minutes: int = 60
    day_start_minutes: int = 8 * 60
    day_end_minutes: int = 22 * 60
    days: Sequence[int] = ALL_DAYS

    def __post_init__(self):
        _validate_window(self.granularity_minutes, self.day_start_minutes, self.day_end_minutes)
        invalid_days = [day for day in self.days if day not in ALL_DAYS]
        if invalid_days:
            raise ValueError(f"Days must be between 1 and 7, got {invalid_days}")
        object.__setattr__(self, "days", tuple(sorted(set(self.days))))

    @classmethod
    def from_hhmm(
        cls,
        day_start: str,
        day_end: str,
        granularity_minutes: int = 60,
        days: Sequence[int] = ALL_DAYS
    ) -> "ScanWindow":
        return cls(
            granularity_minutes=granularity_minutes,
            day_start_minutes=parse_hhmm(day_start),
            day_end_minutes=parse_hhmm(day_end, allow_end_of_day=True),
            days=days,
        )

    def describe(self) -> str:
        return (
            f"{format_hhmm(self.day_start_minutes)}-{format_hhmm(self.day_end_minutes)} "
            f"every {self.granularity_minutes} min"
        )


class FreeSlotCalculator:
    """
    Calculates the weekly free slots shared by a set of people.

    Days are processed independently; slots never cross midnight and are
    returned ordered by day, then by start time.
    """

    def __init__(self, scan_window: ScanWindow):
        self.scan_window = scan_window

    def find_free_slots(
        self,
        schedules_by_id: BlocksById,
        selected_ids: Iterable[str],
        min_duration_minutes: int = 0
    ) -> List[FreeSlot]:
        """
        Find all common free slots across the configured days.

        Args:
            schedules_by_id: Blocks per person id
            selected_ids: People who must all be free
            min_duration_minutes: Drop slots shorter than this

        Returns:
            Flat, chronologically ordered list of FreeSlot objects
        """
        per_day = self.free_slots_by_day(schedules_by_id, selected_ids)

        return [
            slot
            for day in self.scan_window.days
            for slot in per_day[day]
            if slot.duration_minutes() >= min_duration_minutes
        ]

    def free_slots_by_day(
        self,
        schedules_by_id: BlocksById,
        selected_ids: Iterable[str]
    ) -> Dict[int, List[FreeSlot]]:
        """Return the free slots keyed by day of week."""
        selected = unique_ids(selected_ids)
        window = self.scan_window

        return {
            day: free_slots_for_day(
                schedules_by_id,
                selected,
                day,
                window.granularity_minutes,
                window.day_start_minutes,
                window.day_end_minutes,
            )
            for day in window.days
        }
