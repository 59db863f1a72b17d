"""Trend of a metric against the value roughly 24 hours earlier."""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from stationwatch.shared.models import Metrics, Reading
from .devices import latest_reading
from .windows import closest_to

REFERENCE_AGE = timedelta(hours=24)


def compute_trend(current: Optional[float], reference: Optional[float]) -> Optional[float]:
    """Percentage change from reference to current.

    Returns:
        The change in percent, or None when either value is missing or the
        reference is zero.
    """
    if current is None or reference is None or reference == 0:
        return None
    return (current - reference) / reference * 100


def reference_value(readings: List[Reading], metric: str, now: datetime) -> Optional[float]:
    """Value of a metric in the reading closest to 24 hours before now.

    Needs at least two readings; with fewer there is nothing to compare
    the current reading against.
    """
    if len(readings) < 2:
        return None

    reference = closest_to(readings, now - REFERENCE_AGE)
    if reference is None:
        return None
    return reference.metrics.get(metric)


def station_trends(readings: List[Reading], now: datetime) -> Dict[str, Optional[float]]:
    """Trend of every metric of the latest reading.

    Args:
        readings: Reading history of one station.
        now: Current time.

    Returns:
        Mapping of metric name to percentage change (or None).
    """
    current = latest_reading(readings)
    trends: Dict[str, Optional[float]] = {}
    for metric in Metrics.names():
        current_value = current.metrics.get(metric) if current else None
        trends[metric] = compute_trend(current_value, reference_value(readings, metric, now))
    return trends


def trend_direction(trend: Optional[float]) -> Optional[str]:
    """'up' for a rise (or no change), 'down' for a fall, None without a trend."""
    if trend is None:
        return None
    return "up" if trend >= 0 else "down"
