"""
Wire formats of the schedule service and their conversion into domain models.

The service speaks Portuguese field names (``disciplina``, ``diaSemana`` ...);
local schedule files may use either those or the English attribute names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.exceptions import InvalidBlockError, ScheduleAPIError
from ..domain.models import PersonSchedule, WeeklyTimeBlock

logger = logging.getLogger(__name__)


class ScheduleBlockPayload(BaseModel):
    """A single ``blocos`` entry as returned by ``/schedules``."""
    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(alias="disciplina")
    room: Optional[str] = Field(default=None, alias="sala")
    day_of_week: int = Field(alias="diaSemana")
    start_time: str = Field(alias="horaInicio")
    end_time: str = Field(alias="horaFim")

    def to_block(self) -> WeeklyTimeBlock:
        """Convert to the domain model; raises InvalidBlockError on bad data."""
        return WeeklyTimeBlock(
            label=self.label,
            room=self.room,
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class ColleaguePayload(BaseModel):
    """A user entry from ``/users/me/colegas``."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str = Field(default="", alias="nome")
    email: str = ""


@dataclass(frozen=True)
class RejectedBlock:
    """A raw block that could not be turned into a WeeklyTimeBlock."""
    index: int
    raw: Any
    reason: str


def parse_blocks(raw_blocks: Any) -> Tuple[List[WeeklyTimeBlock], List[RejectedBlock]]:
    """
    Parse raw block dictionaries, separating valid blocks from rejected ones.

    Args:
        raw_blocks: List of block mappings from the service or a local file

    Returns:
        Tuple of (valid blocks, rejected blocks with the reason)
    """
    if raw_blocks is None:
        return [], []

    if not isinstance(raw_blocks, list):
        raise ScheduleAPIError(f"Expected a list of blocks, got {type(raw_blocks).__name__}")

    blocks: List[WeeklyTimeBlock] = []
    rejected: List[RejectedBlock] = []

    for index, raw in enumerate(raw_blocks):
        try:
            blocks.append(ScheduleBlockPayload.model_validate(raw).to_block())
        except ValidationError as exc:
            rejected.append(RejectedBlock(index=index, raw=raw, reason=_summarize(exc)))
        except InvalidBlockError as exc:
            rejected.append(RejectedBlock(index=index, raw=raw, reason=str(exc)))

    return blocks, rejected


def parse_schedule(person_id: str, data: Any) -> PersonSchedule:
    """
    Build a PersonSchedule from a ``{"user": ..., "blocos": [...]}`` payload.

    Malformed blocks are logged and skipped so only valid blocks reach the
    engine.
    """
    if not isinstance(data, dict):
        raise ScheduleAPIError(f"Unexpected schedule payload for {person_id}: {data!r}")

    blocks, rejected = parse_blocks(data.get("blocos", data.get("blocks")))

    for item in rejected:
        logger.warning(
            "Skipping invalid block #%d for %s: %s",
            item.index,
            person_id,
            item.reason,
        )

    return PersonSchedule.from_blocks(person_id, blocks)


def schedule_to_payload(schedule: PersonSchedule) -> Dict[str, Any]:
    """Inverse of ``parse_schedule`` using the service field names."""
    return {
        "user": schedule.person_id,
        "blocos": [
            {
                "disciplina": block.label,
                "sala": block.room,
                "diaSemana": block.day_of_week,
                "horaInicio": block.start_time,
                "horaFim": block.end_time,
            }
            for block in schedule.blocks
        ],
    }


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)
