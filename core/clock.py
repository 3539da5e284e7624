"""
Wall-clock helpers for minute-resolution matching.

All scheduler code reads time through a `Clock` callable so tests can drive
a simulated clock instead of waiting on the real one.
"""
from datetime import datetime, time, timedelta
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def system_clock(tz_name: Optional[str] = None) -> Clock:
    """Return a clock for the given IANA zone, or host local time."""
    tz = ZoneInfo(tz_name) if tz_name else None

    def _now() -> datetime:
        if tz is None:
            return datetime.now()
        return datetime.now(tz)

    return _now


def truncate_to_minute(value: Union[datetime, time]) -> time:
    """Drop seconds and sub-seconds; the result is a naive time of day."""
    return time(value.hour, value.minute)


def minute_window(minute: time) -> tuple[time, time]:
    """Inclusive [HH:MM:00, HH:MM:59.999999] bounds for a truncated minute."""
    return time(minute.hour, minute.minute), time(minute.hour, minute.minute, 59, 999999)


def next_boundary(now: datetime, interval_seconds: int) -> datetime:
    """
    The first multiple of `interval_seconds` since midnight strictly after
    `now`. Exactly on a boundary returns the following one.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    step = timedelta(seconds=interval_seconds)
    return midnight + ((now - midnight) // step + 1) * step

