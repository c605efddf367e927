"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .free_time_finder import FreeTimeFinderService, ScheduleClientProtocol

__all__ = ["FreeTimeFinderService", "ScheduleClientProtocol"]
