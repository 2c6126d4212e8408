"""
Domain-specific exception hierarchy for the salon availability engine.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class ValidationError(SalonSlotsError):
    """Raised when block data or a queried range is invalid."""


class NotFoundError(SalonSlotsError):
    """Raised when a block, salon or artist does not exist."""


class ScheduleParseError(SalonSlotsError):
    """Raised when opening hours cannot be parsed."""


class StoreUnavailableError(SalonSlotsError):
    """Raised when the block store or directory cannot be reached."""
