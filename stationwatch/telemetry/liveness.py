"""Station liveness classification."""

import math
from datetime import datetime
from typing import Optional

from stationwatch.shared.models import DeviceStatus, StatusLabel

DEFAULT_ONLINE_THRESHOLD_MINUTES = 30

# Stations silent for longer than this are offline, whatever the threshold
IDLE_LIMIT_MINUTES = 180


def format_time_ago(then: datetime, now: datetime) -> str:
    """Human readable age, e.g. 'just now', '5 min ago', '2h 5m ago', '3 days ago'."""
    # Half-up rounding to whole minutes
    minutes = int(math.floor((now - then).total_seconds() / 60 + 0.5))

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} min ago"

    hours, remaining = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {remaining}m ago" if remaining > 0 else f"{hours}h ago"

    days = hours // 24
    return f"{days} day{'s' if days != 1 else ''} ago"


def classify(
    last_reading_time: Optional[datetime],
    now: datetime,
    online_threshold_minutes: float = DEFAULT_ONLINE_THRESHOLD_MINUTES,
) -> DeviceStatus:
    """Classify a station by the age of its latest reading.

    Online below the threshold, Idle below three hours, Offline beyond.
    The result depends on 'now' and must be recomputed as time passes.
    """
    if last_reading_time is None:
        return DeviceStatus(StatusLabel.UNKNOWN, "No timestamp available")

    age_minutes = (now - last_reading_time).total_seconds() / 60
    ago_text = format_time_ago(last_reading_time, now)

    if age_minutes < online_threshold_minutes:
        return DeviceStatus(StatusLabel.ONLINE, ago_text)
    if age_minutes < IDLE_LIMIT_MINUTES:
        return DeviceStatus(StatusLabel.IDLE, ago_text)
    return DeviceStatus(StatusLabel.OFFLINE, ago_text)
