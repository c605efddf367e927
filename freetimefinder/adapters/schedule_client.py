"""
REST client for the student schedule service.
"""

import logging
from typing import Any, Dict, List, Sequence

import requests
from pydantic import ValidationError

from ..domain.exceptions import ScheduleAPIError
from ..domain.models import PersonSchedule
from .payloads import ColleaguePayload, parse_schedule

logger = logging.getLogger(__name__)


class ScheduleAPIClient:
    """
    Client for the schedule service API.

    Fetches one person's weekly blocks at a time; the caller decides which
    people to fetch and hands the snapshots to the engine.
    """

    def __init__(self, base_url: str, access_token: str, timeout: float = 30):
        """
        Initialize the API client.

        Args:
            base_url: Service root, e.g. "https://example.org/api"
            access_token: Bearer token obtained from ``/auth/login``
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        })

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ScheduleAPIError(f"Request to {url} failed: {e}") from e

        if response.status_code == 404:
            raise ScheduleAPIError(f"Not found: {path}")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ScheduleAPIError(f"Schedule service returned an error for {path}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ScheduleAPIError(f"Invalid JSON from {path}: {e}") from e

    def get_schedule(self, person_id: str) -> PersonSchedule:
        """
        Get one person's weekly blocks.

        Args:
            person_id: User id, or "me" for the authenticated user

        Returns:
            PersonSchedule with only the valid blocks

        Raises:
            ScheduleAPIError: If the schedule cannot be fetched
        """
        path = "/schedules/me" if person_id == "me" else f"/schedules/user/{person_id}"
        data = self._get(path)
        return parse_schedule(person_id, data)

    def get_schedules(self, person_ids: Sequence[str]) -> Dict[str, PersonSchedule]:
        """Fetch the schedules for several people, one request each."""
        return {person_id: self.get_schedule(person_id) for person_id in person_ids}

    def get_colleagues(self) -> List[ColleaguePayload]:
        """List the authenticated user's colleagues."""
        data = self._get("/users/me/colegas")

        try:
            return [ColleaguePayload.model_validate(item) for item in data.get("colegas", [])]
        except (AttributeError, ValidationError) as e:
            raise ScheduleAPIError(f"Unexpected colleagues payload: {e}") from e

    def get_group_member_ids(self, group_id: str) -> List[str]:
        """
        Resolve a group's member ids from the user's group list.

        Members may be returned either as ids or as embedded user objects.
        """
        groups = self._get("/groups/me")

        if not isinstance(groups, list):
            raise ScheduleAPIError("Unexpected groups payload: expected a list")

        for group in groups:
            if not isinstance(group, dict):
                raise ScheduleAPIError(f"Unexpected group entry: {group!r}")
            if group.get("_id") != group_id:
                continue

            member_ids: List[str] = []
            for member in group.get("membros", []):
                member_id = member.get("_id") if isinstance(member, dict) else member
                if member_id and member_id not in member_ids:
                    member_ids.append(member_id)
            return member_ids

        raise ScheduleAPIError(f"Group {group_id} not found among your groups")

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching the user profile.

        Returns:
            User profile data
        """
        return self._get("/auth/me")
