"""Summary statistics of a bucketed series."""

from dataclasses import dataclass
from typing import List, Optional

from stationwatch.shared.models import Bucket


@dataclass
class SeriesStats:
    """Min, max, mean and most recent value of one metric."""
    min: float
    max: float
    avg: float
    current: float


def series_stats(buckets: List[Bucket], metric: str) -> Optional[SeriesStats]:
    """Statistics of a metric across buckets that have a value for it.

    Returns:
        SeriesStats, or None when no bucket carries the metric.
    """
    values = [b.metrics.get(metric) for b in buckets]
    values = [v for v in values if v is not None]
    if not values:
        return None

    return SeriesStats(
        min=min(values),
        max=max(values),
        avg=sum(values) / len(values),
        current=values[-1],
    )
