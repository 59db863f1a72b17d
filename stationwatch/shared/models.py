"""Core data models for weather station telemetry."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


@dataclass
class Metrics:
    """Weather metrics carried by a reading or a bucket.

    Every field is optional. None means the station did not report the
    metric, which is not the same as a reported zero.
    """
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    pressure_hpa: Optional[float] = None
    wind_speed_mps: Optional[float] = None
    wind_direction_deg: Optional[float] = None
    wind_gust_mps: Optional[float] = None
    rain_accumulation_mm: Optional[float] = None
    rain_rate_mm_per_hour: Optional[float] = None
    light_intensity_lux: Optional[float] = None
    uv_index: Optional[float] = None

    @classmethod
    def names(cls) -> List[str]:
        """Metric field names in declaration order."""
        return [f.name for f in fields(cls)]

    def get(self, metric: str) -> Optional[float]:
        """Get a metric value by field name."""
        if metric not in self.names():
            raise KeyError(f"Unknown metric: {metric}")
        return getattr(self, metric)

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in self.names()}


@dataclass
class SignalQuality:
    """Radio link quality reported alongside an uplink."""
    rssi_dbm: Optional[float] = None
    snr_db: Optional[float] = None
    packet_error_rate: Optional[float] = None


@dataclass
class Reading:
    """Represents a single normalized telemetry sample from a station."""
    device_id: str
    application_id: str
    device_address: str
    received_at: Optional[datetime]
    metrics: Metrics = field(default_factory=Metrics)
    signal: SignalQuality = field(default_factory=SignalQuality)
    record_id: Optional[str] = None
    frame_counter: Optional[int] = None
    description: str = ""

    def has_timestamp(self) -> bool:
        """Check if the reading carries a usable timestamp."""
        return self.received_at is not None


class Granularity(Enum):
    """Bucket sizes used for charting."""
    HOUR = "hour"
    DAY = "day"


@dataclass
class Bucket:
    """One aggregation cell of a chart series."""
    bucket_key: str
    representative_time: datetime
    sample_count: int
    metrics: Metrics
    granularity: Granularity


class StatusLabel(Enum):
    """Liveness classification of a station."""
    ONLINE = "Online"
    IDLE = "Idle"
    OFFLINE = "Offline"
    UNKNOWN = "Unknown"


@dataclass
class DeviceStatus:
    """Liveness status with a human readable age."""
    label: StatusLabel
    ago_text: str


@dataclass
class DeviceSummary:
    """Row of the device list: one entry per station."""
    device_id: str
    name: str
    address: str
    application_id: str
    last_seen: Optional[datetime]
    reading_count: int
    status: DeviceStatus
    latest: Reading
