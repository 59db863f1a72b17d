"""Normalization of raw station records into Reading values.

Records reach the store in more than one shape. Each known shape has an
adapter; a record is handled by the first adapter that recognises it, so a
new shape is supported by adding an adapter to SHAPE_ADAPTERS.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Union

from stationwatch.shared.models import Metrics, Reading, SignalQuality

logger = logging.getLogger(__name__)

DEFAULT_APPLICATION_ID = "weather-stations"

# Epoch values above this are taken as milliseconds
_EPOCH_MS_THRESHOLD = 1e11

_FRACTION_PATTERN = re.compile(r"\.(\d+)")


class RecordShape(Enum):
    """Known raw record shapes."""
    UPLINK = "uplink"
    FLAT = "flat"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp into an aware datetime.

    Accepts ISO-8601 strings (a trailing Z and sub-microsecond fractions
    included), epoch seconds or milliseconds, dates and datetimes. Naive
    values are taken as UTC.

    Returns:
        The parsed instant, or None if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    parsed: Optional[datetime] = None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, (int, float)):
            seconds = value / 1000.0 if abs(value) > _EPOCH_MS_THRESHOLD else value
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            text = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
            parsed = datetime.fromisoformat(text)
    except (ValueError, TypeError, OverflowError, OSError):
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_float(value: Any) -> Optional[float]:
    """Try to convert value to float, return None if not possible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def _first_present(sources: Iterable[Mapping[str, Any]], names: Iterable[str]) -> Any:
    for source in sources:
        for name in names:
            if source.get(name) is not None:
                return source[name]
    return None


def _pressure_hpa(pascals: Any) -> Optional[float]:
    # Stations report pascals; a zero reading means the sensor is absent
    value = to_float(pascals)
    if not value:
        return None
    return value / 100


class ShapeAdapter(ABC):
    """Base class for raw record shape adapters."""

    shape: RecordShape

    @abstractmethod
    def matches(self, record: Mapping[str, Any]) -> bool:
        """Whether this adapter understands the record."""
        pass

    @abstractmethod
    def adapt(self, record: Mapping[str, Any], key: Optional[str] = None) -> Optional[Reading]:
        """Convert the record, or return None if no device id can be derived."""
        pass


class UplinkAdapter(ShapeAdapter):
    """Network server uplink documents (end_device_ids + uplink_message)."""

    shape = RecordShape.UPLINK

    def matches(self, record: Mapping[str, Any]) -> bool:
        return isinstance(record.get("end_device_ids"), Mapping) and isinstance(
            record.get("uplink_message"), Mapping
        )

    def adapt(self, record: Mapping[str, Any], key: Optional[str] = None) -> Optional[Reading]:
        ids = record["end_device_ids"]
        device_id = ids.get("device_id")
        if not device_id:
            return None

        uplink = record["uplink_message"]
        payload = uplink.get("decoded_payload")
        if not isinstance(payload, Mapping):
            payload = {}

        rx_metadata = uplink.get("rx_metadata")
        first_rx = rx_metadata[0] if isinstance(rx_metadata, list) and rx_metadata else {}
        if not isinstance(first_rx, Mapping):
            first_rx = {}

        application_ids = ids.get("application_ids")
        application_id = None
        if isinstance(application_ids, Mapping):
            application_id = application_ids.get("application_id")

        frame_counter = to_float(uplink.get("f_cnt"))

        return Reading(
            device_id=str(device_id),
            application_id=str(application_id or DEFAULT_APPLICATION_ID),
            device_address=str(ids.get("dev_addr") or device_id),
            received_at=parse_timestamp(record.get("received_at")),
            metrics=Metrics(
                temperature_c=to_float(payload.get("air_temperature")),
                humidity_pct=to_float(payload.get("air_humidity")),
                pressure_hpa=_pressure_hpa(payload.get("barometric_pressure")),
                wind_speed_mps=to_float(payload.get("wind_speed")),
                wind_direction_deg=to_float(payload.get("wind_direction_sensor")),
                wind_gust_mps=to_float(payload.get("peak_wind_gust")),
                rain_accumulation_mm=to_float(payload.get("rain_accumulation")),
                rain_rate_mm_per_hour=to_float(payload.get("rain_gauge")),
                light_intensity_lux=to_float(payload.get("light_intensity")),
                uv_index=to_float(payload.get("uv_index")),
            ),
            signal=SignalQuality(
                rssi_dbm=to_float(first_rx.get("rssi")),
                snr_db=to_float(first_rx.get("snr")),
                packet_error_rate=to_float(uplink.get("packet_error_rate")),
            ),
            record_id=_record_id(record, key),
            frame_counter=int(frame_counter) if frame_counter is not None else None,
            description=str(record.get("description") or ""),
        )


class FlatAdapter(ShapeAdapter):
    """Legacy flat records with top level temperature, humidity, etc.

    Canonical payload names win over the flat aliases. Legacy rows always
    carried zeroed radio metadata, so the signal fields default to 0 here;
    weather metrics stay None when absent.
    """

    shape = RecordShape.FLAT

    FIELD_NAMES = {
        "temperature_c": ("air_temperature", "temperature"),
        "humidity_pct": ("air_humidity", "humidity"),
        "wind_speed_mps": ("wind_speed",),
        "wind_direction_deg": ("wind_direction_sensor", "wind_direction"),
        "wind_gust_mps": ("peak_wind_gust", "wind_gust"),
        "rain_accumulation_mm": ("rain_accumulation", "rain"),
        "rain_rate_mm_per_hour": ("rain_gauge",),
        "light_intensity_lux": ("light_intensity", "light"),
        "uv_index": ("uv_index", "uv"),
    }

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(record.get(name) is not None for name in ("decoded_payload", "temperature", "humidity"))

    def adapt(self, record: Mapping[str, Any], key: Optional[str] = None) -> Optional[Reading]:
        device_id = record.get("device_id")
        if not device_id and key is not None:
            device_id = f"device-{key}"
        if not device_id:
            return None

        sources: List[Mapping[str, Any]] = []
        payload = record.get("decoded_payload")
        if isinstance(payload, Mapping):
            sources.append(payload)
        sources.append(record)

        values = {
            metric: to_float(_first_present(sources, names))
            for metric, names in self.FIELD_NAMES.items()
        }
        values["pressure_hpa"] = _pressure_hpa(
            _first_present(sources, ("barometric_pressure", "pressure"))
        )

        frame_counter = to_float(record.get("frame_counter"))

        return Reading(
            device_id=str(device_id),
            application_id=str(record.get("application_id") or DEFAULT_APPLICATION_ID),
            device_address=str(record.get("device_addr") or device_id),
            received_at=parse_timestamp(_first_present([record], ("received_at", "timestamp", "time"))),
            metrics=Metrics(**values),
            signal=SignalQuality(
                rssi_dbm=to_float(record.get("rssi")) or 0.0,
                snr_db=to_float(record.get("snr")) or 0.0,
                packet_error_rate=to_float(record.get("error_rate")) or 0.0,
            ),
            record_id=_record_id(record, key),
            frame_counter=int(frame_counter) if frame_counter is not None else 0,
            description=str(record.get("description") or ""),
        )


SHAPE_ADAPTERS: List[ShapeAdapter] = [UplinkAdapter(), FlatAdapter()]


def _record_id(record: Mapping[str, Any], key: Optional[str]) -> Optional[str]:
    record_id = record.get("id", key)
    return str(record_id) if record_id is not None else None


def detect_shape(record: Any) -> Optional[RecordShape]:
    """Return the shape of a raw record, or None if it is not recognised."""
    if not isinstance(record, Mapping):
        return None
    for adapter in SHAPE_ADAPTERS:
        if adapter.matches(record):
            return adapter.shape
    return None


def normalize(record: Any, key: Optional[str] = None) -> Optional[Reading]:
    """Convert one raw record into a Reading.

    Args:
        record: Raw record from the store, in any known shape.
        key: Collection key of the record, used as id fallback.

    Returns:
        A Reading, or None when the shape is unknown or no device id can
        be derived. An unparseable timestamp yields a Reading whose
        received_at is None.
    """
    if not isinstance(record, Mapping):
        return None

    for adapter in SHAPE_ADAPTERS:
        if adapter.matches(record):
            return adapter.adapt(record, key)
    return None


def normalize_records(
    records: Union[None, Iterable[Any], Mapping[str, Any]],
) -> List[Reading]:
    """Normalize a collection of raw records.

    Accepts a list of records or a mapping of key to record. Records that
    cannot be normalized or carry no valid timestamp are dropped. Every
    reading of a device is kept.
    """
    if not records:
        return []

    if isinstance(records, Mapping):
        items = [(str(key), record) for key, record in records.items()]
    else:
        items = [(str(index), record) for index, record in enumerate(records)]

    readings = []
    dropped = 0
    for key, record in items:
        reading = normalize(record, key)
        if reading is None or not reading.has_timestamp():
            dropped += 1
            continue
        readings.append(reading)

    if dropped:
        logger.debug(f"Dropped {dropped} of {len(items)} records during normalization")
    return readings
