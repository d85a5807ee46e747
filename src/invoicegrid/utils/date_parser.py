"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_RELATIVE_OFFSET = re.compile(r"^(?:in\s+|\+)(\d+)\s*(d|day|days|w|week|weeks|m|month|months)$")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports the forms used for invoice and due dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative days: "today", "tomorrow", "yesterday"
    - Offsets: "in 30 days", "+2 weeks", "+1m"
    - Periods: "next week", "next month", "end of month"

    Args:
        date_str: Date string in various formats
        today: Reference date for relative forms, defaults to the current date

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "next week": today + timedelta(days=(7 - today.weekday())),
        "next month": (today + relativedelta(months=1)).replace(day=1),
        "end of month": today + relativedelta(day=31),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    match = _RELATIVE_OFFSET.match(date_str)
    if match:
        amount = int(match.group(1))
        unit = match.group(2)[0]
        if unit == "d":
            return today + timedelta(days=amount)
        if unit == "w":
            return today + timedelta(weeks=amount)
        return today + relativedelta(months=amount)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def format_date(value: date) -> str:
    """Format a date the way it is stored in cells."""
    return value.isoformat()


def stored_date(value) -> Optional[date]:
    """Read a date back from a cell value, or None when absent or invalid."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(str(value)).date()
    except ValueError:
        return None
