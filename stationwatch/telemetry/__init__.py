"""Telemetry engine: pure functions over weather station readings."""

from .normalizer import normalize, normalize_records, parse_timestamp, RecordShape
from .windows import ALL_DEVICES, CustomRange, InvalidRangeError, Window, select_window, validate_range
from .aggregator import aggregate, bucket_granularity
from .trend import compute_trend, reference_value, station_trends, trend_direction
from .liveness import classify, format_time_ago
from .devices import filter_devices, latest_per_device, latest_reading, summarize_devices, unique_devices
from .stats import SeriesStats, series_stats

__all__ = [
    "normalize",
    "normalize_records",
    "parse_timestamp",
    "RecordShape",
    "ALL_DEVICES",
    "CustomRange",
    "InvalidRangeError",
    "Window",
    "select_window",
    "validate_range",
    "aggregate",
    "bucket_granularity",
    "compute_trend",
    "reference_value",
    "station_trends",
    "trend_direction",
    "classify",
    "format_time_ago",
    "filter_devices",
    "latest_per_device",
    "latest_reading",
    "summarize_devices",
    "unique_devices",
    "SeriesStats",
    "series_stats",
]
