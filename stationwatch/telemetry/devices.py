"""Per-device views over a reading collection."""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from stationwatch.shared.models import DeviceSummary, Reading
from .liveness import DEFAULT_ONLINE_THRESHOLD_MINUTES, classify

ALL_STATUSES = "all"


def unique_devices(readings: List[Reading]) -> List[Reading]:
    """First-encountered reading of every device, in encounter order.

    Sort by received_at descending first to get the latest per device.
    """
    seen: Dict[str, Reading] = {}
    for reading in readings:
        if reading.device_id not in seen:
            seen[reading.device_id] = reading
    return list(seen.values())


def latest_per_device(readings: List[Reading]) -> List[Reading]:
    """Most recent reading of every device, newest device first."""
    timed = [r for r in readings if r.received_at is not None]
    timed.sort(key=lambda r: r.received_at, reverse=True)
    return unique_devices(timed)


def latest_reading(readings: List[Reading], device_id: Optional[str] = None) -> Optional[Reading]:
    """Reading with the maximum received_at, optionally for one device."""
    candidates = [
        r for r in readings
        if r.received_at is not None and (device_id is None or r.device_id == device_id)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda r: r.received_at)


def default_device_name(device_id: str) -> str:
    return f"Weather Station {device_id[-4:]}"


def summarize_devices(
    readings: List[Reading],
    now: datetime,
    online_threshold_minutes: float = DEFAULT_ONLINE_THRESHOLD_MINUTES,
) -> List[DeviceSummary]:
    """Build the device list: latest reading, reading count and status."""
    counts = Counter(r.device_id for r in readings)

    summaries = []
    for latest in latest_per_device(readings):
        summaries.append(DeviceSummary(
            device_id=latest.device_id,
            name=default_device_name(latest.device_id),
            address=latest.device_address,
            application_id=latest.application_id,
            last_seen=latest.received_at,
            reading_count=counts[latest.device_id],
            status=classify(latest.received_at, now, online_threshold_minutes),
            latest=latest,
        ))
    return summaries


def filter_devices(
    summaries: List[DeviceSummary],
    search: str = "",
    status: str = ALL_STATUSES,
) -> List[DeviceSummary]:
    """Filter the device list by search text and status.

    Args:
        summaries: Device list.
        search: Case-insensitive text matched against device id,
            application id and address.
        status: Status label to keep (e.g. 'online'), or 'all'.
    """
    term = search.lower()
    wanted = status.lower()

    result = []
    for summary in summaries:
        if term and not any(
            term in value.lower()
            for value in (summary.device_id, summary.application_id, summary.address)
        ):
            continue
        if wanted != ALL_STATUSES and summary.status.label.value.lower() != wanted:
            continue
        result.append(summary)
    return result
