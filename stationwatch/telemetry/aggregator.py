"""Bucketed aggregation of readings into chart series.

Readings are grouped into hourly or daily buckets in local time. Within a
bucket every metric is the mean of the readings that reported it, except
rain accumulation, which is summed because it is a cumulative quantity.

Averages divide by the number of readings that reported the metric, not by
the number of readings in the bucket. Earlier dashboard builds added 0 for a
missing value and divided by the bucket size, which dragged averages toward
zero whenever a sensor skipped a report; that skew is not reproduced here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional

from stationwatch.shared.models import Bucket, Granularity, Metrics, Reading
from .windows import CustomRange, Window, WindowSpec, as_datetime, localize, to_local

logger = logging.getLogger(__name__)

# Metrics combined by summing instead of averaging
SUMMED_METRICS = frozenset({"rain_accumulation_mm"})

# Custom ranges longer than this are bucketed by day
HOURLY_SPAN_LIMIT = timedelta(days=7)


@dataclass
class MetricAccumulator:
    """Running total of one metric within one bucket."""
    summed: bool = False
    total: float = 0.0
    count: int = 0

    def add(self, value: Optional[float]):
        if value is None:
            return
        self.total += value
        self.count += 1

    def result(self) -> Optional[float]:
        if self.count == 0:
            return None
        if self.summed:
            return self.total
        return self.total / self.count


class _BucketBuilder:
    def __init__(self, key: str, start: datetime):
        self.key = key
        self.start = start
        self.sample_count = 0
        self.accumulators: Dict[str, MetricAccumulator] = {
            name: MetricAccumulator(summed=name in SUMMED_METRICS)
            for name in Metrics.names()
        }

    def add(self, reading: Reading):
        self.sample_count += 1
        for name, accumulator in self.accumulators.items():
            accumulator.add(getattr(reading.metrics, name))

    def build(self, granularity: Granularity) -> Bucket:
        return Bucket(
            bucket_key=self.key,
            representative_time=self.start,
            sample_count=self.sample_count,
            metrics=Metrics(**{name: acc.result() for name, acc in self.accumulators.items()}),
            granularity=granularity,
        )


def bucket_granularity(window: WindowSpec, tz: Optional[tzinfo] = None) -> Granularity:
    """Pick the bucket size for a window.

    The last day is charted hourly, the week and month daily. A custom
    range is hourly when it spans at most seven days.
    """
    if isinstance(window, CustomRange):
        span = as_datetime(window.end, tz) - as_datetime(window.start, tz)
        if span > HOURLY_SPAN_LIMIT:
            return Granularity.DAY
        return Granularity.HOUR

    if window == Window.DAY:
        return Granularity.HOUR
    return Granularity.DAY


def bucket_start(instant: datetime, granularity: Granularity, tz: Optional[tzinfo] = None) -> datetime:
    """Truncate an instant to the start of its bucket in the given zone.

    Without tz the system zone is used with the offset in force at the
    instant (hour) or at local midnight (day).
    """
    local = to_local(instant, tz)
    if granularity == Granularity.DAY:
        return localize(datetime.combine(local.date(), time.min), tz)
    return local.replace(minute=0, second=0, microsecond=0)


def bucket_key(start: datetime, granularity: Granularity) -> str:
    """Format a bucket start as YYYY-MM-DD or YYYY-MM-DD HH:00."""
    if granularity == Granularity.DAY:
        return start.strftime("%Y-%m-%d")
    return start.strftime("%Y-%m-%d %H:00")


def aggregate(
    readings: List[Reading],
    window: WindowSpec,
    tz: Optional[tzinfo] = None,
) -> List[Bucket]:
    """Group readings into buckets and combine their metrics.

    Args:
        readings: Readings already selected for the window.
        window: The window the readings were selected with; decides the
            bucket size.
        tz: Zone used to truncate to hours and days. Defaults to the
            system local zone.

    Returns:
        Non-empty buckets sorted by start time.
    """
    granularity = bucket_granularity(window, tz)

    builders: Dict[str, _BucketBuilder] = {}
    for reading in readings:
        if reading.received_at is None:
            continue
        start = bucket_start(reading.received_at, granularity, tz)
        key = bucket_key(start, granularity)
        builder = builders.get(key)
        if builder is None:
            builder = builders[key] = _BucketBuilder(key, start)
        builder.add(reading)

    buckets = [builder.build(granularity) for builder in builders.values()]
    buckets.sort(key=lambda b: b.representative_time)
    logger.debug(f"Aggregated {len(readings)} readings into {len(buckets)} {granularity.value} buckets")
    return buckets
