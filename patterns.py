"""Centralized regex patterns for the worklog dashboard."""

import re


class Patterns:
    """Regex patterns used throughout fetching and aggregation."""

    # Date format: YYYY-MM-DD
    DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    # Display hours: 2.5h, 0h, 12h
    HOURS_DISPLAY = re.compile(r"^(\d+(?:\.\d+)?)h$")

    # Schedule time of day: 9:00, 09:00, 23:59
    TIME_OF_DAY = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
