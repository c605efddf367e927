"""
Domain-specific exception hierarchy for the free time finder application.
"""


class FreeTimeError(Exception):
    """Base class for all application-level errors."""


class InvalidBlockError(FreeTimeError, ValueError):
    """Raised when a weekly schedule block violates the block invariants."""


class ScheduleAPIError(FreeTimeError):
    """Raised when schedule data cannot be fetched or parsed."""


class AuthenticationError(FreeTimeError):
    """Raised when authentication or token handling fails."""
