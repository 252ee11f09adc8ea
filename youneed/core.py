# youneed/core.py

from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    # naive UTC, the way timestamps are stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC and stripped; naive ones are kept as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def overlaps(
    start_a: datetime,
    end_a: Optional[datetime],
    start_b: datetime,
    end_b: Optional[datetime],
) -> bool:
    """Closed-interval overlap: touching endpoints count as a clash.

    A missing end is treated as a zero-length interval at its start.
    """
    end_a = end_a or start_a
    end_b = end_b or start_b
    return start_b <= end_a and end_b >= start_a


def to_minute(value: time) -> int:
    return value.hour * 60 + value.minute


def within_window(moment: datetime, open_time: time, close_time: time) -> bool:
    """True when the clock time of `moment` lies in [open_time, close_time], minute granularity."""
    minute = moment.hour * 60 + moment.minute
    return to_minute(open_time) <= minute <= to_minute(close_time)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Wall-clock time of `value` in `tz_name`, naive. Naive input is taken as already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
