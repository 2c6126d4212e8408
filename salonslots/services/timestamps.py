"""
Coercion of caller-supplied dates and timestamps into pendulum values.
"""

from datetime import date, datetime
from typing import Any

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import ValidationError


def parse_timestamp(value: Any, field_name: str, timezone: str = "local") -> DateTime:
    """
    Parse an ISO 8601 string or datetime into an aware pendulum DateTime.

    Naive values are interpreted in ``timezone``.

    Raises:
        ValidationError: If the value is missing or not a valid timestamp
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required.")

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pendulum.instance(value, tz=timezone)
        return pendulum.instance(value)

    if isinstance(value, date):
        return pendulum.datetime(value.year, value.month, value.day, tz=timezone)

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO 8601 string, got {type(value).__name__}.")

    try:
        parsed = pendulum.parse(value.strip(), tz=timezone)
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"{field_name} is not a valid date: {value!r}") from exc

    if not isinstance(parsed, DateTime):
        raise ValidationError(f"{field_name} is not a valid date: {value!r}")

    return parsed


def parse_day(value: Any) -> Date:
    """
    Parse a calendar day given as ``YYYY-MM-DD`` or a date/datetime.

    Raises:
        ValidationError: If the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return pendulum.instance(value).date()

    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"date must be a 'YYYY-MM-DD' string, got {value!r}.")

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"date is not a valid calendar day: {value!r}") from exc
