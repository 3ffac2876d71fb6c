"""Utility functions for the worklog dashboard."""

import math
import os
from datetime import date, datetime, timedelta

from patterns import Patterns

# Fixed daily target used for progress percentages
DAILY_TARGET_HOURS = 8

DEFAULT_SCHEDULE_TIME = "09:00"
DEFAULT_TIMEZONE = "UTC"

# Assignee ids that may not be added through the API
DEFAULT_DENYLIST = ("712020:021cc494-3a62-45a8-bd3d-db7e0a9dd057",)


class ConfigError(Exception):
    """Required configuration is missing or malformed."""


def load_config() -> dict:
    """Build config from process environment, read fresh on every call."""
    denylist_raw = os.environ.get("ASSIGNEE_DENYLIST")
    if denylist_raw is None:
        denylist = list(DEFAULT_DENYLIST)
    else:
        denylist = [item.strip() for item in denylist_raw.split(",") if item.strip()]

    return {
        "jira": {
            "base_url": os.environ.get("JIRA_URL", "").rstrip("/"),
            "user_email": os.environ.get("JIRA_USER_EMAIL", ""),
            "api_token": os.environ.get("JIRA_API_TOKEN", ""),
        },
        "schedule": {
            "time": os.environ.get("WORKLOG_SCHEDULE_TIME", DEFAULT_SCHEDULE_TIME),
            "timezone": os.environ.get("WORKLOG_TIMEZONE", DEFAULT_TIMEZONE),
        },
        "assignees": {
            "denylist": denylist,
        },
    }


def validate_config(config: dict) -> list[str]:
    """Validate config structure and return list of error messages.

    Returns:
        Empty list if valid, otherwise list of error messages.
    """
    errors = []

    jira = config.get("jira", {})
    env_names = {
        "base_url": "JIRA_URL",
        "user_email": "JIRA_USER_EMAIL",
        "api_token": "JIRA_API_TOKEN",
    }
    for key, env_name in env_names.items():
        if not jira.get(key):
            errors.append(f"Missing {env_name}")

    schedule = config.get("schedule", {})
    if schedule.get("time") and not Patterns.TIME_OF_DAY.match(schedule["time"]):
        errors.append(f"Invalid WORKLOG_SCHEDULE_TIME '{schedule['time']}', expected HH:MM")

    return errors


def require_jira_config(config: dict) -> None:
    """Raise ConfigError unless the Jira credentials are all present."""
    errors = [e for e in validate_config(config) if "JIRA_" in e]
    if errors:
        raise ConfigError("JIRA environment variables not configured: " + ", ".join(errors))


def parse_schedule_time(value: str) -> tuple[int, int]:
    """Parse HH:MM into (hour, minute)."""
    m = Patterns.TIME_OF_DAY.match(value or "")
    if not m:
        raise ConfigError(f"Invalid schedule time '{value}', expected HH:MM")
    return int(m.group(1)), int(m.group(2))


# ============================================================================
# Date Utilities
# ============================================================================


def get_previous_working_day(today: date | None = None) -> str:
    """Get the previous working day as YYYY-MM-DD.

    Monday maps to the Friday before it; holidays are not considered.
    """
    today = today or date.today()
    days_back = 3 if today.weekday() == 0 else 1
    return (today - timedelta(days=days_back)).strftime("%Y-%m-%d")


def is_valid_date(value: str) -> bool:
    """Check a YYYY-MM-DD string is both well-formed and a real day."""
    if not value or not Patterns.DATE_FORMAT.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def format_date_display(date_str: str) -> str:
    """Format YYYY-MM-DD as 'Wednesday, January 10, 2024'."""
    d = datetime.strptime(date_str, "%Y-%m-%d")
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


# ============================================================================
# Hours Utilities
# ============================================================================


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for non-negative values (2.25 -> 2.3)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def format_hours_value(hours: float) -> str:
    """Format decimal hours as a display string: 3.5 -> '3.5h', 3.0 -> '3h'."""
    rounded = round_half_up(hours, 1)
    if rounded == int(rounded):
        return f"{int(rounded)}h"
    return f"{rounded}h"


def format_time_spent(seconds: int) -> str:
    """Convert summed worklog seconds to display hours (one decimal)."""
    return format_hours_value(seconds / 3600)


def parse_hours(value: str | None) -> float:
    """Parse a display string like '2.5h' back into a float."""
    m = Patterns.HOURS_DISPLAY.match((value or "").strip())
    if not m:
        raise ValueError(f"Invalid hours value: {value!r}")
    return float(m.group(1))


def progress_percent(hours: float) -> int:
    """Share of the daily target, clamped to 100."""
    return min(int(round_half_up(hours / DAILY_TARGET_HOURS * 100)), 100)


def get_initials(name: str) -> str:
    """First letter of up to two words, uppercased."""
    return "".join(word[0].upper() for word in name.split(" ") if word)[:2]
