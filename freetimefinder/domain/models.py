"""
Domain models for weekly recurring schedule blocks and free slots.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from pendulum import DateTime

from .exceptions import InvalidBlockError

MINUTES_PER_DAY = 24 * 60

DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

DAY_ABBREVIATIONS = {day: name[:3] for day, name in DAY_NAMES.items()}

_HHMM_PATTERN = re.compile(r"([01]\d|2[0-3]):([0-5]\d)")


def parse_hhmm(value: str, allow_end_of_day: bool = False) -> int:
    """
    Convert a zero-padded 24-hour "HH:MM" string to minutes since midnight.

    Args:
        value: Time string such as "09:30"
        allow_end_of_day: Accept "24:00" (1440) as the end of a scan window

    Returns:
        Minutes since midnight

    Raises:
        ValueError: If the string is not a valid HH:MM time
    """
    if not isinstance(value, str):
        raise ValueError(f"Time must be an 'HH:MM' string, got {value!r}")

    if allow_end_of_day and value == "24:00":
        return MINUTES_PER_DAY

    match = _HHMM_PATTERN.fullmatch(value)
    if not match:
        raise ValueError(f"Time must be in 24-hour 'HH:MM' format, got {value!r}")

    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    """Render minutes since midnight as "HH:MM" (1440 renders as "24:00")."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minutes must be between 0 and {MINUTES_PER_DAY}, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class WeeklyTimeBlock:
    """
    A commitment that repeats every week on the same day and clock time.

    Invariants: day_of_week is 1 (Monday) .. 7 (Sunday), both times are valid
    "HH:MM" strings, start is before end on the same day, label is not blank.
    """
    label: str
    day_of_week: int
    start_time: str
    end_time: str
    room: Optional[str] = None

    start_minutes: int = field(init=False, repr=False, compare=False)
    end_minutes: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label.strip():
            raise InvalidBlockError("Block label must not be empty")

        if (
            isinstance(self.day_of_week, bool)
            or not isinstance(self.day_of_week, int)
            or not 1 <= self.day_of_week <= 7
        ):
            raise InvalidBlockError(
                f"Day of week must be an integer between 1 and 7, got {self.day_of_week!r}"
            )

        try:
            start = parse_hhmm(self.start_time)
            end = parse_hhmm(self.end_time)
        except ValueError as exc:
            raise InvalidBlockError(str(exc)) from exc

        if end <= start:
            raise InvalidBlockError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )

        room = self.room.strip() if isinstance(self.room, str) else None

        object.__setattr__(self, "label", self.label.strip())
        object.__setattr__(self, "room", room or None)
        object.__setattr__(self, "start_minutes", start)
        object.__setattr__(self, "end_minutes", end)

    def covers(self, day_of_week: int, instant: int) -> bool:
        """Check if the block occupies the instant (end is exclusive)."""
        return (
            self.day_of_week == day_of_week
            and self.start_minutes <= instant < self.end_minutes
        )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_minutes - self.start_minutes

    def display_label(self) -> str:
        """Label shown on occupied grid cells, with the room when known."""
        if self.room:
            return f"{self.label} ({self.room})"
        return self.label

    def __str__(self) -> str:
        return f"{DAY_ABBREVIATIONS[self.day_of_week]} {self.start_time}-{self.end_time} {self.display_label()}"


@dataclass(frozen=True)
class PersonSchedule:
    """A person's complete set of weekly blocks, replaced as a whole."""
    person_id: str
    blocks: Tuple[WeeklyTimeBlock, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "blocks", tuple(self.blocks))

    @classmethod
    def from_blocks(cls, person_id: str, blocks: Iterable[WeeklyTimeBlock]) -> "PersonSchedule":
        return cls(person_id=person_id, blocks=tuple(blocks))

    def blocks_on(self, day_of_week: int) -> Tuple[WeeklyTimeBlock, ...]:
        return tuple(block for block in self.blocks if block.day_of_week == day_of_week)


@dataclass(frozen=True)
class OccupancyQuery:
    """A (day, instant) point in the weekly pattern."""
    day_of_week: int
    instant: int

    def __post_init__(self):
        if not 1 <= self.day_of_week <= 7:
            raise ValueError(f"Day of week must be between 1 and 7, got {self.day_of_week}")
        if not 0 <= self.instant < MINUTES_PER_DAY:
            raise ValueError(f"Instant must be between 0 and {MINUTES_PER_DAY - 1}, got {self.instant}")

    @classmethod
    def from_datetime(cls, moment: DateTime) -> "OccupancyQuery":
        """
        Project a concrete datetime onto the weekly pattern.

        The caller decides what "now" is; nothing here reads the clock.
        """
        return cls(day_of_week=moment.isoweekday(), instant=moment.hour * 60 + moment.minute)

    @property
    def hour(self) -> int:
        return self.instant // 60


@dataclass(frozen=True)
class FreeSlot:
    """
    A maximal contiguous interval on one day when every selected person is free.
    """
    day_of_week: int
    start_minutes: int
    end_minutes: int

    def __post_init__(self):
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"Slot start {self.start_minutes} must be before slot end {self.end_minutes}"
            )

    @property
    def start(self) -> str:
        return format_hhmm(self.start_minutes)

    @property
    def end(self) -> str:
        return format_hhmm(self.end_minutes)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_minutes - self.start_minutes

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday | HH:MM - HH:MM (N min)
        """
        return (
            f"{DAY_NAMES[self.day_of_week]} | {self.start} - {self.end} "
            f"({self.duration_minutes()} min)"
        )

    def __str__(self) -> str:
        return f"{DAY_ABBREVIATIONS[self.day_of_week]} {self.start}-{self.end}"
