from datetime import datetime, timezone

from stationwatch.display.formatting import (
    format_metric,
    format_temperature,
    format_timestamp,
    format_trend,
    format_wind_speed,
    signal_style,
)
from stationwatch.preferences.settings import DisplaySettings


def test_temperature_units():
    assert format_temperature(20.0, DisplaySettings()) == "20.0°C"
    assert format_temperature(20.0, DisplaySettings(temperature_unit="fahrenheit")) == "68.0°F"
    assert format_temperature(None, DisplaySettings()) == "N/A"


def test_wind_speed_units():
    assert format_wind_speed(10.0, DisplaySettings()) == "10.0 m/s"
    assert format_wind_speed(10.0, DisplaySettings(wind_speed_unit="kmh")) == "36.0 km/h"
    assert format_wind_speed(10.0, DisplaySettings(wind_speed_unit="mph")) == "22.4 mph"


def test_format_metric():
    settings = DisplaySettings()
    assert format_metric("humidity_pct", 55.4, settings) == "55%"
    assert format_metric("pressure_hpa", 1012.0, settings) == "1012.0 hPa"
    assert format_metric("rain_accumulation_mm", 1.5, settings) == "1.50 mm"
    assert format_metric("uv_index", None, settings) == "N/A"


def test_format_trend():
    assert format_trend(10.0) == ("▲ 10.0%", "green")
    assert format_trend(0.0) == ("▲ 0.0%", "green")
    assert format_trend(-5.0) == ("▼ 5.0%", "red")
    assert format_trend(None) == ("---", "white")


def test_format_timestamp():
    value = datetime(2024, 5, 1, 14, 5, tzinfo=timezone.utc)
    local = value.astimezone()

    assert format_timestamp(value, DisplaySettings()) == local.strftime("%m/%d/%Y %H:%M")
    settings = DisplaySettings(time_format="12h", date_format="yyyymmdd")
    assert format_timestamp(value, settings) == local.strftime("%Y-%m-%d %I:%M %p")
    assert format_timestamp(None, settings) == "N/A"


def test_signal_style():
    assert signal_style(-70) == "green"
    assert signal_style(-90) == "yellow"
    assert signal_style(-110) == "red"
    assert signal_style(None) == "red"
    assert signal_style(0.0) == "red"
