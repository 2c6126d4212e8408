"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    NotFoundError,
    SalonSlotsError,
    ScheduleParseError,
    StoreUnavailableError,
    ValidationError,
)
from .models import Artist, BlockedRange, DayHours, OpeningHours, Slot, TimeRange, Weekday
from .overlap import OverlapFilter, ranges_overlap
from .schedule import ScheduleResolver, parse_opening_hours, validate_opening_hours
from .slot_tiler import SLOT_DURATION_MINUTES, SlotTiler

__all__ = [
    "Artist",
    "BlockedRange",
    "DayHours",
    "NotFoundError",
    "OpeningHours",
    "OverlapFilter",
    "SLOT_DURATION_MINUTES",
    "SalonSlotsError",
    "ScheduleParseError",
    "ScheduleResolver",
    "Slot",
    "SlotTiler",
    "StoreUnavailableError",
    "TimeRange",
    "ValidationError",
    "Weekday",
    "parse_opening_hours",
    "ranges_overlap",
    "validate_opening_hours",
]
