"""Next-run computation for crawl cadences"""

from datetime import datetime, timedelta, timezone
from typing import Literal

ScheduleInterval = Literal["hourly", "daily", "weekly"]

SUNDAY = 6  # datetime.weekday()


def parse_time_of_day(value: str) -> tuple[int, int]:
    """
    Parse an ``HH:MM`` string.

    Raises:
        ValueError: If the value is not a valid 24-hour time
    """
    try:
        hour_text, minute_text = value.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except ValueError as e:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM") from e
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return hour, minute


def compute_next_run(
    interval: ScheduleInterval,
    time_of_day: str = "02:00",
    now: datetime | None = None,
) -> datetime:
    """
    Compute the next cadence-driven run time in UTC.

    - hourly: exactly one hour after ``now``
    - daily: the next occurrence of ``time_of_day``, tomorrow if it already passed
    - weekly: the next Sunday at ``time_of_day``, a week out if that moment passed

    Args:
        interval: Cadence name
        time_of_day: ``HH:MM`` in UTC, ignored for hourly
        now: Reference time (defaults to the current time)

    Returns:
        Timezone-aware UTC datetime strictly after ``now``
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    if interval == "hourly":
        return now + timedelta(hours=1)

    hour, minute = parse_time_of_day(time_of_day)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if interval == "daily":
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    if interval == "weekly":
        candidate += timedelta(days=(SUNDAY - now.weekday()) % 7)
        if candidate <= now:
            candidate += timedelta(days=7)
        return candidate

    raise ValueError(f"Unknown schedule interval: {interval!r}")
