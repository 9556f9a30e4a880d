"""Time-related utility functions for session countdowns."""

from datetime import timedelta


def format_countdown(remaining: timedelta) -> str:
    """Format time left as MM:SS, or H:MM:SS from one hour up.

    Negative durations are shown as 00:00.

    Args:
        remaining: Time left

    Returns:
        Formatted string like "04:59" or "1:55:00"
    """
    total_seconds = max(int(remaining.total_seconds()), 0)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_duration(duration: timedelta) -> str:
    """Format a duration as a short human-readable string.

    Args:
        duration: Duration to format

    Returns:
        Formatted string like "2h 15m", "45m" or "30s"
    """
    total_seconds = max(int(duration.total_seconds()), 0)
    if total_seconds < 60:
        return f"{total_seconds}s"

    minutes = total_seconds // 60
    if minutes < 60:
        return f"{minutes}m"

    hours, remaining_minutes = divmod(minutes, 60)
    if remaining_minutes:
        return f"{hours}h {remaining_minutes}m"
    return f"{hours}h"
