from datetime import timedelta

from stationwatch.preferences.alerts import check_thresholds, generate_alerts
from stationwatch.preferences.settings import AlertThresholds
from stationwatch.telemetry.devices import summarize_devices


def test_no_alerts_within_limits(make_reading, now):
    reading = make_reading(received_at=now, temperature_c=20.0, humidity_pct=50.0, pressure_hpa=1010.0)
    assert check_thresholds(reading, AlertThresholds()) == []


def test_high_temperature_alert(make_reading, now):
    reading = make_reading(device_id="roof", received_at=now, temperature_c=35.0)
    alerts = check_thresholds(reading, AlertThresholds())

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.kind == "temperature"
    assert alert.value == 35.0
    assert alert.threshold == 30.0
    assert alert.message == "roof: temperature 35.0°C above 30°C"


def test_low_pressure_alert(make_reading, now):
    reading = make_reading(device_id="roof", received_at=now, pressure_hpa=970.0)
    alerts = check_thresholds(reading, AlertThresholds())
    assert [a.kind for a in alerts] == ["pressure"]
    assert alerts[0].message == "roof: pressure 970.0 hPa below 980 hPa"


def test_custom_thresholds(make_reading, now):
    reading = make_reading(received_at=now, wind_speed_mps=12.0, rain_accumulation_mm=3.0)
    thresholds = AlertThresholds(wind_speed=10.0, rain=2.5)
    assert [a.kind for a in check_thresholds(reading, thresholds)] == ["wind_speed", "rain"]


def test_offline_station_alert(make_reading, now):
    readings = [
        make_reading(device_id="old", received_at=now - timedelta(hours=5), temperature_c=40.0),
        make_reading(device_id="hot", received_at=now - timedelta(minutes=5), temperature_c=40.0),
    ]
    alerts = generate_alerts(summarize_devices(readings, now), AlertThresholds())

    assert [(a.device_id, a.kind) for a in alerts] == [("hot", "temperature"), ("old", "offline")]
    assert alerts[1].message == "old offline (last seen 5h ago)"
