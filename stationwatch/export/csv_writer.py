"""CSV export of bucketed history."""

import csv
import logging
from datetime import date
from pathlib import Path
from typing import IO, List, Optional, Union

from stationwatch.shared.models import Bucket, Granularity
from stationwatch.telemetry.windows import WindowSpec, window_label

logger = logging.getLogger(__name__)

HEADERS = [
    "Date",
    "Time",
    "Temperature (°C)",
    "Humidity (%)",
    "Pressure (hPa)",
    "Wind Speed (m/s)",
    "Rain (mm)",
]

# (metric, decimals) per numeric column
COLUMNS = [
    ("temperature_c", 1),
    ("humidity_pct", 0),
    ("pressure_hpa", 1),
    ("wind_speed_mps", 1),
    ("rain_accumulation_mm", 2),
]

MISSING = "N/A"


def _format(value: Optional[float], decimals: int) -> str:
    if value is None:
        return MISSING
    return f"{value:.{decimals}f}"


def bucket_row(bucket: Bucket) -> List[str]:
    """One CSV row for a bucket."""
    start = bucket.representative_time
    time_text = "" if bucket.granularity == Granularity.DAY else start.strftime("%H:%M")
    return [start.strftime("%Y-%m-%d"), time_text] + [
        _format(bucket.metrics.get(metric), decimals) for metric, decimals in COLUMNS
    ]


def write_buckets_csv(buckets: List[Bucket], stream: IO[str]) -> int:
    """Write buckets as CSV to an open text stream.

    Returns:
        Number of data rows written.
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADERS)
    for bucket in buckets:
        writer.writerow(bucket_row(bucket))
    return len(buckets)


def export_filename(window: WindowSpec, today: date) -> str:
    """Download name, e.g. weather_data_week_2024-05-01.csv."""
    return f"weather_data_{window_label(window)}_{today.isoformat()}.csv"


def export_buckets(
    buckets: List[Bucket],
    directory: Union[str, Path],
    window: WindowSpec,
    today: date,
) -> Optional[Path]:
    """Write buckets to a CSV file in directory.

    Returns:
        Path of the written file, or None when there is nothing to export.
    """
    if not buckets:
        logger.info("No data to export")
        return None

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(window, today)
    with open(path, "w", newline="", encoding="utf-8") as f:
        rows = write_buckets_csv(buckets, f)
    logger.info(f"Exported {rows} rows to {path}")
    return path
