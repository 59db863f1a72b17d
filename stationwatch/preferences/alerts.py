"""Alert generation from the latest station readings."""

from dataclasses import dataclass
from typing import List, Optional

from stationwatch.shared.models import DeviceSummary, Reading, StatusLabel
from .settings import AlertThresholds


@dataclass
class Alert:
    """A condition worth telling the user about."""
    device_id: str
    kind: str  # metric name, or "offline"
    message: str
    value: Optional[float] = None
    threshold: Optional[float] = None


def check_thresholds(reading: Reading, thresholds: AlertThresholds) -> List[Alert]:
    """Compare one reading against the user's alert thresholds."""
    metrics = reading.metrics
    checks = [
        ("temperature", metrics.temperature_c, thresholds.temperature, "above", "°C"),
        ("humidity", metrics.humidity_pct, thresholds.humidity, "above", "%"),
        ("wind_speed", metrics.wind_speed_mps, thresholds.wind_speed, "above", " m/s"),
        ("rain", metrics.rain_accumulation_mm, thresholds.rain, "above", " mm"),
        ("pressure", metrics.pressure_hpa, thresholds.pressure, "below", " hPa"),
    ]

    alerts = []
    for kind, value, limit, direction, unit in checks:
        if value is None:
            continue
        breached = value > limit if direction == "above" else value < limit
        if breached:
            alerts.append(Alert(
                device_id=reading.device_id,
                kind=kind,
                message=f"{reading.device_id}: {kind.replace('_', ' ')} {value:.1f}{unit} {direction} {limit:g}{unit}",
                value=value,
                threshold=limit,
            ))
    return alerts


def generate_alerts(summaries: List[DeviceSummary], thresholds: AlertThresholds) -> List[Alert]:
    """Alerts for offline stations and threshold breaches of online ones."""
    alerts = []
    for summary in summaries:
        if summary.status.label == StatusLabel.OFFLINE:
            alerts.append(Alert(
                device_id=summary.device_id,
                kind="offline",
                message=f"{summary.device_id} offline (last seen {summary.status.ago_text})",
            ))
            continue
        alerts.extend(check_thresholds(summary.latest, thresholds))
    return alerts
