"""Time window selection of readings."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import List, Optional, Tuple, Union

from stationwatch.shared.models import Reading

logger = logging.getLogger(__name__)

ALL_DEVICES = "all"


class Window(Enum):
    """Named look-back windows ending at 'now'."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


WINDOW_SPANS = {
    Window.DAY: timedelta(hours=24),
    Window.WEEK: timedelta(days=7),
    Window.MONTH: timedelta(days=30),
}


class InvalidRangeError(ValueError):
    """Raised when a custom range starts after it ends."""

    pass


@dataclass(frozen=True)
class CustomRange:
    """A user supplied range. The end is inclusive of its whole calendar day."""
    start: Union[date, datetime]
    end: Union[date, datetime]

    @property
    def label(self) -> str:
        return "custom"


WindowSpec = Union[Window, CustomRange]


def window_label(window: WindowSpec) -> str:
    """Short name of a window, e.g. 'day' or 'custom'."""
    return window.value if isinstance(window, Window) else window.label


def localize(naive: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach a zone to a wall-clock time.

    Without tz the time is read in the system zone, with the UTC offset in
    force on that date, so both sides of a DST change resolve correctly.
    """
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def to_local(instant: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express an aware instant in tz, or in the system zone when tz is None."""
    return instant.astimezone(tz)


def as_datetime(value: Union[date, datetime], tz: Optional[tzinfo] = None, end_of_day: bool = False) -> datetime:
    """Aware datetime for a range bound; a date means its midnight, or its last instant with end_of_day."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = localize(value, tz)
        if not end_of_day:
            return value
        value = to_local(value, tz).date()
    return localize(datetime.combine(value, time.max if end_of_day else time.min), tz)


def validate_range(custom: CustomRange, tz: Optional[tzinfo] = None) -> CustomRange:
    """Check a custom range before it is used for selection.

    Raises:
        InvalidRangeError: If the range starts after it ends.
    """
    start = as_datetime(custom.start, tz)
    end = as_datetime(custom.end, tz)
    if start > end:
        raise InvalidRangeError(f"Start date {custom.start} is after end date {custom.end}")
    return custom


def window_bounds(window: WindowSpec, now: datetime, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """Get the inclusive (start, end) instants of a window.

    Args:
        window: Named window or custom range.
        now: Current time; the end of every named window.
        tz: Zone for calendar days of a custom range. Defaults to the
            system local zone, the same zone buckets are truncated in.

    Returns:
        Tuple of start and end datetimes.
    """
    if isinstance(window, CustomRange):
        return as_datetime(window.start, tz), as_datetime(window.end, tz, end_of_day=True)

    return now - WINDOW_SPANS[window], now


def select_window(
    readings: List[Reading],
    window: WindowSpec,
    now: datetime,
    device_id: str = ALL_DEVICES,
    tz: Optional[tzinfo] = None,
) -> List[Reading]:
    """Select readings whose receive time falls inside a window.

    The custom range is assumed to be validated by the caller.

    Args:
        readings: Normalized readings.
        window: Named window or custom range.
        now: Current time.
        device_id: Keep only this device, or 'all' for every device.
        tz: Zone for calendar days of a custom range.

    Returns:
        Matching readings in their original order.
    """
    start, end = window_bounds(window, now, tz)

    return [
        reading for reading in readings
        if reading.received_at is not None
        and start <= reading.received_at <= end
        and (device_id == ALL_DEVICES or reading.device_id == device_id)
    ]


def closest_to(readings: List[Reading], instant: datetime) -> Optional[Reading]:
    """Get the reading whose receive time is nearest to an instant."""
    candidates = [r for r in readings if r.received_at is not None]
    if not candidates:
        return None
    return min(candidates, key=lambda r: abs((r.received_at - instant).total_seconds()))
