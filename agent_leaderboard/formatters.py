"""Utilities for formatting leaderboard values for display."""

from datetime import datetime

from .constants import MINUTES_PER_HOUR, SECONDS_PER_MINUTE


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as a short human readable string.

    Args:
        seconds: Duration in seconds.

    Returns:
        String such as '45s', '2m 5s', '2m', '1h 30m' or '3h'.
    """
    if seconds < SECONDS_PER_MINUTE:
        return f"{round(seconds)}s"

    minutes = int(seconds // SECONDS_PER_MINUTE)
    secs = round(seconds % SECONDS_PER_MINUTE)
    if minutes < MINUTES_PER_HOUR:
        return f"{minutes}m {secs}s" if secs > 0 else f"{minutes}m"

    hours = minutes // MINUTES_PER_HOUR
    remaining_minutes = minutes % MINUTES_PER_HOUR
    return f"{hours}h {remaining_minutes}m" if remaining_minutes > 0 else f"{hours}h"


def format_percent(value: float) -> str:
    return f"{round(value)}%"


def format_percentile(value: float) -> str:
    """Format a percentile with its ordinal suffix, e.g. '1st', '12th', '23rd'."""
    rounded = round(value)
    if rounded % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(rounded % 10, "th")
    return f"{rounded}{suffix}"


def month_to_date_range(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Get the ranking period from the start of the current month until now.

    Args:
        now: Reference time; defaults to the current local time.

    Returns:
        Tuple of (first instant of the month, now).
    """
    now = now or datetime.now()
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return (start, now)
