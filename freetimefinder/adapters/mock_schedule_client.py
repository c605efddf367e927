"""
Mock schedule client for trying the tool without a running schedule service.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..domain.exceptions import ScheduleAPIError
from ..domain.models import PersonSchedule
from .payloads import ColleaguePayload, parse_schedule

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_schedule_data.json"


class MockScheduleClient:
    """
    Mock client that serves schedules from a JSON file.

    The file mirrors the service payloads: a list of ``schedules`` (each
    ``{"user", "blocos"}``), plus optional ``colegas`` and ``groups``.
    """

    def __init__(self, data_file: Optional[Path] = None, data: Optional[Dict[str, Any]] = None):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file to load; defaults to the bundled sample data
            data: Already loaded data, takes precedence over ``data_file``
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.data = data if data is not None else self._load_data()

    def _load_data(self) -> Dict[str, Any]:
        """Load mock schedule data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock data file %s not found, serving no schedules", self.data_file)
            return {}

        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_schedule(self, person_id: str) -> PersonSchedule:
        for entry in self.data.get("schedules", []):
            if entry.get("user") == person_id:
                return parse_schedule(person_id, entry)

        raise ScheduleAPIError(f"No schedule found for {person_id}")

    def get_schedules(self, person_ids: Sequence[str]) -> Dict[str, PersonSchedule]:
        return {person_id: self.get_schedule(person_id) for person_id in person_ids}

    def get_colleagues(self) -> List[ColleaguePayload]:
        return [ColleaguePayload.model_validate(item) for item in self.data.get("colegas", [])]

    def get_group_member_ids(self, group_id: str) -> List[str]:
        for group in self.data.get("groups", []):
            if group.get("_id") == group_id:
                return list(dict.fromkeys(group.get("membros", [])))

        raise ScheduleAPIError(f"Group {group_id} not found among your groups")

    def test_connection(self) -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock user profile data
        """
        return {"_id": "me", "nome": "Mock Student", "email": "mock.student@example.com"}
