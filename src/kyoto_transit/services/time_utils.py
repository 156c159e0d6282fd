"""Clock helpers for GTFS schedule times.

Schedule times are time-of-day strings with no date. They are compared as
seconds since the start of the service day, exactly as written in the feed;
no wrap-around is applied for service running past midnight.
"""

from datetime import datetime


def parse_gtfs_time(time_str: str) -> tuple[int, int, int]:
    """Parse a schedule time string into hours, minutes, seconds.

    Accepts HH:MM:SS and HH:MM. Hours may exceed 24 when a feed writes
    late-night trips that way; they are kept as-is.

    Args:
        time_str: Time string.

    Returns:
        Tuple of (hours, minutes, seconds).

    Raises:
        ValueError: If the time string is invalid.
    """
    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
    except ValueError as e:
        raise ValueError(f"Invalid GTFS time format: {time_str}") from e

    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    return hours, minutes, seconds


def gtfs_time_to_seconds(time_str: str) -> int:
    """Convert a schedule time string to seconds since the start of the service day."""
    hours, minutes, seconds = parse_gtfs_time(time_str)
    return hours * 3600 + minutes * 60 + seconds


def seconds_to_gtfs_time(total_seconds: int) -> str:
    """Format seconds since the start of the service day as HH:MM:SS."""
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_clock_time(time_str: str) -> str:
    """Format a schedule time as HH:MM for display."""
    hours, minutes, _ = parse_gtfs_time(time_str)
    return f"{hours:02d}:{minutes:02d}"


def format_duration(total_minutes: int) -> str:
    """Format a ride duration in Japanese.

    Examples:
        30 -> "30分", 65 -> "1時間5分"
    """
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}時間{minutes}分"
    return f"{minutes}分"


def time_to_gtfs_format(dt: datetime) -> str:
    """Convert a datetime to GTFS time format (HH:MM:SS)."""
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
