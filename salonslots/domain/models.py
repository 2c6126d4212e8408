"""
Domain models for opening hours, slots and blocked ranges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime

from .overlap import ranges_overlap


class Weekday(str, Enum):
    """Canonical weekday keys used in opening-hours records."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day) -> "Weekday":
        """Return the weekday of a date (ISO numbering, 1=Monday)."""
        return _ISO_WEEKDAYS[day.isoweekday()]


_ISO_WEEKDAYS = {index: weekday for index, weekday in enumerate(Weekday, start=1)}


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return ranges_overlap(self.start, self.end, other.start, other.end)


@dataclass(frozen=True)
class Slot(TimeRange):
    """A bookable candidate interval inside one day's open window."""

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
        }


@dataclass(frozen=True)
class DayHours:
    """Opening and closing time for one weekday."""
    start: time
    end: time

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class OpeningHours:
    """
    Per-weekday opening hours of a salon or an artist.

    Weekdays missing from ``days`` or mapped to ``None`` are closed.
    """
    days: Dict[Weekday, Optional[DayHours]] = field(default_factory=dict)

    def for_weekday(self, weekday: Weekday) -> Optional[DayHours]:
        return self.days.get(weekday)

    def to_dict(self) -> Dict[str, Optional[Dict[str, str]]]:
        """Return the canonical storage form, one key per weekday."""
        result: Dict[str, Optional[Dict[str, str]]] = {}
        for weekday in Weekday:
            hours = self.days.get(weekday)
            result[weekday.value] = hours.to_dict() if hours else None
        return result


@dataclass(frozen=True)
class BlockedRange:
    """
    A closed interval during which nothing may be booked.

    ``artist_id=None`` makes the block salon-wide: it applies to every
    artist of the salon.
    """
    id: str
    salon_id: str
    start: DateTime
    end: DateTime
    artist_id: Optional[str] = None
    reason: Optional[str] = None

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @property
    def is_salon_wide(self) -> bool:
        return self.artist_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "salon_id": self.salon_id,
            "artist_id": self.artist_id,
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlockedRange":
        """Rebuild a block from its ``to_dict`` form."""
        return cls(
            id=data["id"],
            salon_id=data["salon_id"],
            artist_id=data.get("artist_id"),
            start=pendulum.parse(data["start"]),
            end=pendulum.parse(data["end"]),
            reason=data.get("reason"),
        )


@dataclass(frozen=True)
class Artist:
    """An artist working in a salon, with their own opening hours."""
    id: str
    salon_id: str
    hours: Any = None  # raw record: JSON string, mapping or None
    name: str = ""
