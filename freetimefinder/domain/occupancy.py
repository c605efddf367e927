"""
Per-instant occupancy checks for a single person's weekly blocks.

Every check uses half-open intervals: a block covering 09:00-10:00 occupies
09:00 and 09:59 but not 10:00, so back-to-back blocks hand over without a gap.
"""

from typing import Iterable, Optional

from .models import WeeklyTimeBlock


def _tie_break_key(block: WeeklyTimeBlock):
    # earliest start, then longest, then label and room
    return (block.start_minutes, -block.end_minutes, block.label, block.room or "")


def is_occupied(blocks: Iterable[WeeklyTimeBlock], day: int, instant: int) -> bool:
    """Return True if any block covers the given day and instant."""
    return any(block.covers(day, instant) for block in blocks)


def occupying_block(
    blocks: Iterable[WeeklyTimeBlock],
    day: int,
    instant: int
) -> Optional[WeeklyTimeBlock]:
    """
    Return the block responsible for occupying the instant, or None.

    A person's blocks may overlap. When several cover the instant, the one
    starting earliest wins; equal starts go to the longer block, and full
    ties are settled by label and then room so the result never depends on
    input order.
    """
    covering = [block for block in blocks if block.covers(day, instant)]

    if not covering:
        return None

    return min(covering, key=_tie_break_key)
