"""Presentation helpers: units, decimals, trend arrows and colours."""

from datetime import datetime
from typing import Optional, Tuple

from stationwatch.shared.models import StatusLabel
from stationwatch.preferences.settings import DisplaySettings
from stationwatch.telemetry.trend import trend_direction

NOT_AVAILABLE = "N/A"

STATUS_STYLES = {
    StatusLabel.ONLINE: "green",
    StatusLabel.IDLE: "yellow",
    StatusLabel.OFFLINE: "red",
    StatusLabel.UNKNOWN: "white",
}

WIND_FACTORS = {
    "ms": (1.0, "m/s"),
    "kmh": (3.6, "km/h"),
    "mph": (2.236936, "mph"),
}


def format_value(value: Optional[float], unit: str = "", decimals: int = 1) -> str:
    """Format a number with unit, 'N/A' when missing."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}{unit}"


def format_temperature(value_c: Optional[float], settings: DisplaySettings) -> str:
    if value_c is None:
        return NOT_AVAILABLE
    if settings.temperature_unit == "fahrenheit":
        return format_value(value_c * 9 / 5 + 32, "°F")
    return format_value(value_c, "°C")


def format_wind_speed(value_mps: Optional[float], settings: DisplaySettings) -> str:
    if value_mps is None:
        return NOT_AVAILABLE
    factor, unit = WIND_FACTORS.get(settings.wind_speed_unit, WIND_FACTORS["ms"])
    return format_value(value_mps * factor, f" {unit}")


def format_metric(metric: str, value: Optional[float], settings: DisplaySettings) -> str:
    """Format any metric the way the dashboard shows it."""
    if metric == "temperature_c":
        return format_temperature(value, settings)
    if metric in ("wind_speed_mps", "wind_gust_mps"):
        return format_wind_speed(value, settings)

    units = {
        "humidity_pct": ("%", 0),
        "pressure_hpa": (" hPa", 1),
        "wind_direction_deg": ("°", 0),
        "rain_accumulation_mm": (" mm", 2),
        "rain_rate_mm_per_hour": (" mm/h", 1),
        "light_intensity_lux": (" lux", 0),
        "uv_index": ("", 1),
    }
    unit, decimals = units.get(metric, ("", 1))
    return format_value(value, unit, decimals)


def format_trend(trend: Optional[float]) -> Tuple[str, str]:
    """Trend text and style: '▲ 10.0%' in green, '▼ 5.2%' in red, '---' without trend."""
    direction = trend_direction(trend)
    if direction is None:
        return "---", "white"
    arrow, style = ("▲", "green") if direction == "up" else ("▼", "red")
    return f"{arrow} {abs(trend):.1f}%", style


def format_timestamp(value: Optional[datetime], settings: DisplaySettings) -> str:
    """Local date and time in the user's preferred formats."""
    if value is None:
        return NOT_AVAILABLE
    local = value.astimezone()
    date_formats = {
        "mmddyyyy": "%m/%d/%Y",
        "ddmmyyyy": "%d/%m/%Y",
        "yyyymmdd": "%Y-%m-%d",
    }
    date_part = local.strftime(date_formats.get(settings.date_format, "%m/%d/%Y"))
    time_part = local.strftime("%I:%M %p" if settings.time_format == "12h" else "%H:%M")
    return f"{date_part} {time_part}"


def signal_style(rssi: Optional[float]) -> str:
    """Colour for a signal strength; missing or zero RSSI counts as weak."""
    if not rssi:
        return "red"
    if rssi > -80:
        return "green"
    if rssi > -100:
        return "yellow"
    return "red"
