"""
Tests for the REST schedule client and the mock client.
"""

import pytest
import requests

from freetimefinder.adapters.mock_schedule_client import MockScheduleClient
from freetimefinder.adapters.schedule_client import ScheduleAPIClient
from freetimefinder.domain.exceptions import ScheduleAPIError


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class FakeSession:
    """Records requested URLs and replays canned responses."""

    def __init__(self, responses):
        self.responses = responses
        self.urls = []
        self.headers = {}

    def get(self, url, timeout=None):
        self.urls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


BASE = "https://schedules.example.org/api"


def _client(responses):
    client = ScheduleAPIClient(base_url=BASE + "/", access_token="token-123")
    client.session = FakeSession(responses)
    return client


class TestScheduleAPIClient:
    """Tests for ScheduleAPIClient."""

    def test_sets_bearer_header(self):
        """Test that the session carries the access token."""
        client = ScheduleAPIClient(base_url=BASE, access_token="token-123")

        assert client.session.headers["Authorization"] == "Bearer token-123"

    def test_get_schedule_for_user(self):
        """Test fetching and parsing another user's schedule."""
        client = _client({
            f"{BASE}/schedules/user/u-ana": FakeResponse(payload={
                "user": "u-ana",
                "blocos": [
                    {"disciplina": "Statistics", "diaSemana": 1, "horaInicio": "10:00", "horaFim": "11:00"},
                    {"disciplina": "Broken", "diaSemana": 1, "horaInicio": "11:00", "horaFim": "10:00"},
                ],
            }),
        })

        schedule = client.get_schedule("u-ana")

        assert schedule.person_id == "u-ana"
        assert [block.label for block in schedule.blocks] == ["Statistics"]

    def test_get_own_schedule(self):
        """Test that 'me' uses the own-schedule endpoint."""
        client = _client({f"{BASE}/schedules/me": FakeResponse(payload={"user": "x", "blocos": []})})

        assert client.get_schedules(["me"])["me"].blocks == ()
        assert client.session.urls == [f"{BASE}/schedules/me"]

    def test_not_found(self):
        """Test that a missing schedule is an error, not an empty schedule."""
        client = _client({f"{BASE}/schedules/user/ghost": FakeResponse(status_code=404)})

        with pytest.raises(ScheduleAPIError, match="Not found"):
            client.get_schedule("ghost")

    def test_server_error(self):
        """Test that HTTP errors become ScheduleAPIError."""
        client = _client({f"{BASE}/schedules/me": FakeResponse(status_code=500)})

        with pytest.raises(ScheduleAPIError):
            client.get_schedule("me")

    def test_network_error(self):
        """Test that connection failures become ScheduleAPIError."""
        client = _client({f"{BASE}/schedules/me": requests.exceptions.ConnectionError("refused")})

        with pytest.raises(ScheduleAPIError, match="refused"):
            client.get_schedule("me")

    def test_invalid_json(self):
        """Test that an unparsable body becomes ScheduleAPIError."""
        client = _client({f"{BASE}/schedules/me": FakeResponse(payload=None)})

        with pytest.raises(ScheduleAPIError, match="Invalid JSON"):
            client.get_schedule("me")

    def test_group_member_ids(self):
        """Test resolving members given as ids or embedded users."""
        client = _client({
            f"{BASE}/groups/me": FakeResponse(payload=[
                {"_id": "g-other", "membros": ["x"]},
                {"_id": "g-1", "membros": ["u-ana", {"_id": "u-bruno", "nome": "Bruno"}, "u-ana"]},
            ]),
        })

        assert client.get_group_member_ids("g-1") == ["u-ana", "u-bruno"]

        with pytest.raises(ScheduleAPIError, match="not found"):
            client.get_group_member_ids("g-missing")

    def test_malformed_group_entry(self):
        """Test that a group entry that is not an object is an API error."""
        client = _client({f"{BASE}/groups/me": FakeResponse(payload=["g-1"])})

        with pytest.raises(ScheduleAPIError, match="Unexpected group entry"):
            client.get_group_member_ids("g-1")

    def test_colleagues(self):
        """Test parsing the colleague list."""
        client = _client({
            f"{BASE}/users/me/colegas": FakeResponse(payload={
                "colegas": [{"_id": "u-ana", "nome": "Ana Ribeiro", "email": "ana@example.com"}],
            }),
        })

        colleagues = client.get_colleagues()

        assert colleagues[0].id == "u-ana"
        assert colleagues[0].name == "Ana Ribeiro"


class TestMockScheduleClient:
    """Tests for MockScheduleClient."""

    def test_bundled_data(self):
        """Test that the bundled sample data loads."""
        client = MockScheduleClient()

        schedules = client.get_schedules(["me", "u-carla"])

        assert len(schedules["me"].blocks) == 5
        assert schedules["u-carla"].blocks == ()
        assert client.get_group_member_ids("g-algebra") == ["me", "u-ana", "u-bruno"]

    def test_unknown_person(self):
        """Test that unknown people raise instead of returning empty schedules."""
        with pytest.raises(ScheduleAPIError):
            MockScheduleClient(data={"schedules": []}).get_schedule("ghost")

    def test_missing_file(self, tmp_path):
        """Test that a missing data file serves nothing."""
        client = MockScheduleClient(data_file=tmp_path / "none.json")

        assert client.get_colleagues() == []
