"""
Adapters layer - External integrations (schedule service REST API).
"""

from .authenticator import ApiAuthenticator
from .mock_schedule_client import MockScheduleClient
from .schedule_client import ScheduleAPIClient

__all__ = ["ApiAuthenticator", "MockScheduleClient", "ScheduleAPIClient"]
