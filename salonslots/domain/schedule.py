"""
Opening-hours parsing and per-date resolution.
"""

from __future__ import annotations

import json
import logging
from datetime import date, time
from typing import Any, Dict, Mapping, Optional

import pendulum

from .exceptions import ScheduleParseError
from .models import DayHours, OpeningHours, TimeRange, Weekday

logger = logging.getLogger(__name__)

_WEEKDAYS_BY_NAME = {weekday.value: weekday for weekday in Weekday}


def _parse_clock(value: Any, weekday: Weekday, label: str) -> time:
    """Parse an ``"HH:MM"`` string into a time."""
    if not isinstance(value, str):
        raise ScheduleParseError(f"{weekday.value}.{label} must be a 'HH:MM' string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isascii() and part.isdigit() for part in parts):
        raise ScheduleParseError(f"{weekday.value}.{label} must be 'HH:MM', got {value!r}")

    hour, minute = (int(part) for part in parts)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ScheduleParseError(f"{weekday.value}.{label} is out of range: {value!r}")

    return time(hour=hour, minute=minute)


def parse_opening_hours(raw: Any) -> OpeningHours:
    """
    Parse a raw opening-hours record.

    Args:
        raw: JSON string, mapping of weekday name to ``{"start", "end"}``
            (or ``None`` for a closed day), or ``None``

    Returns:
        OpeningHours instance; weekdays absent from the record are closed

    Raises:
        ScheduleParseError: If the record is not valid JSON or an entry is
            malformed
    """
    if raw is None:
        return OpeningHours()

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError for undecodable bytes
            raise ScheduleParseError(f"Opening hours are not valid JSON: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ScheduleParseError(
            f"Opening hours must be a mapping of weekday to hours, got {type(raw).__name__}"
        )

    days: Dict[Weekday, Optional[DayHours]] = {}

    for key, entry in raw.items():
        weekday = _WEEKDAYS_BY_NAME.get(str(key).strip().lower())
        if weekday is None:
            # Unknown keys are tolerated (legacy records carry extra fields)
            continue

        if entry is None:
            days[weekday] = None
            continue

        if not isinstance(entry, Mapping):
            raise ScheduleParseError(f"{weekday.value} must be an object or null")

        days[weekday] = DayHours(
            start=_parse_clock(entry.get("start"), weekday, "start"),
            end=_parse_clock(entry.get("end"), weekday, "end"),
        )

    return OpeningHours(days=days)


def validate_opening_hours(raw: Any) -> Dict[str, Optional[Dict[str, str]]]:
    """
    Validate an opening-hours record before it is stored.

    Returns the canonical form with all seven weekdays.

    Raises:
        ScheduleParseError: If the record is malformed or a day closes
            before it opens
    """
    hours = parse_opening_hours(raw)
    for weekday, day_hours in hours.days.items():
        if day_hours and day_hours.end <= day_hours.start:
            raise ScheduleParseError(
                f"{weekday.value} closes at {day_hours.end:%H:%M}, "
                f"before opening at {day_hours.start:%H:%M}"
            )
    return hours.to_dict()


class ScheduleResolver:
    """
    Resolves opening hours to the open window of a calendar date.
    """

    def __init__(self, timezone: str = "local"):
        self.timezone = timezone

    def resolve(self, hours: OpeningHours, day: date) -> TimeRange | None:
        """
        Get the open window ``[start, end)`` for a date.
        Returns None if the resource is closed that day.
        """
        day_hours = hours.for_weekday(Weekday.from_date(day))
        if day_hours is None:
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            day_hours.start.hour, day_hours.start.minute,
            tz=self.timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            day_hours.end.hour, day_hours.end.minute,
            tz=self.timezone,
        )

        if end <= start:
            raise ScheduleParseError(
                f"{Weekday.from_date(day).value} closes at {day_hours.end:%H:%M}, "
                f"before opening at {day_hours.start:%H:%M}"
            )

        return TimeRange(start=start, end=end)

    def resolve_raw(self, raw: Any, day: date) -> TimeRange | None:
        """
        Parse and resolve a raw record, failing soft.

        Malformed hours are logged and treated as a closed day so that
        availability queries always return a list.
        """
        try:
            return self.resolve(parse_opening_hours(raw), day)
        except ScheduleParseError as exc:
            logger.warning("Ignoring invalid opening hours for %s: %s", day.isoformat(), exc)
            return None
