import time

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from stationwatch.shared.models import Metrics, Reading, SignalQuality
from stationwatch.preferences.session import UserContext


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user():
    return UserContext(user_id="user-1", email="ops@example.com", first_name="Sam", last_name="Field")


@pytest.fixture
def make_uplink():
    """Factory for network server uplink documents."""
    def _make(
        device_id="eui-a84041000181c0a1",
        received_at="2024-05-01T11:50:00Z",
        record_id=None,
        **payload,
    ):
        decoded = {
            "air_temperature": 21.5,
            "air_humidity": 55,
            "barometric_pressure": 101200,
            "wind_speed": 3.0,
            "rain_accumulation": 0.5,
        }
        decoded.update(payload)
        record = {
            "end_device_ids": {
                "device_id": device_id,
                "application_ids": {"application_id": "weather-stations"},
                "dev_addr": "260B1234",
            },
            "received_at": received_at,
            "uplink_message": {
                "decoded_payload": decoded,
                "f_cnt": 42,
                "rx_metadata": [{"rssi": -85, "snr": 7.5}],
                "packet_error_rate": 0.02,
            },
        }
        if record_id is not None:
            record["id"] = record_id
        return record
    return _make


@pytest.fixture
def make_reading():
    """Factory for normalized readings."""
    def _make(device_id="eui-0001", received_at=None, rssi=-70.0, **metrics):
        return Reading(
            device_id=device_id,
            application_id="weather-stations",
            device_address=f"addr-{device_id}",
            received_at=received_at,
            metrics=Metrics(**metrics),
            signal=SignalQuality(rssi_dbm=rssi, snr_db=7.0, packet_error_rate=0.0),
        )
    return _make


@pytest.fixture
def hourly_readings(make_reading):
    """48 hourly readings of one station starting 2024-05-01 00:00 UTC."""
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return [
        make_reading(
            received_at=base + timedelta(hours=i),
            temperature_c=15.0,
            rain_accumulation_mm=0.5 * (i + 1),
        )
        for i in range(48)
    ]


@pytest.fixture
def mock_storage():
    storage = MagicMock()
    storage.get_latest_records.return_value = []
    storage.get_historical_records.return_value = []
    storage.get_device_records.return_value = []
    return storage


@pytest.fixture
def cet_system_zone(monkeypatch):
    """Run with Central European time as the system zone, DST included."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available")
    monkeypatch.setenv("TZ", "CET-1CEST,M3.5.0,M10.5.0/3")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
