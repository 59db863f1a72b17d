"""
Terminal Monitor for Weather Stations
Full-screen terminal dashboard using the Rich library.
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stationwatch.shared.models import Granularity, Metrics
from stationwatch.export.csv_writer import export_buckets
from stationwatch.preferences.settings import DisplaySettings
from stationwatch.telemetry.windows import window_label
from .data_fetcher import CHART_METRICS, DataFetcher, DashboardSnapshot, StationView
from .formatting import (
    STATUS_STYLES,
    format_metric,
    format_timestamp,
    format_trend,
    format_value,
    signal_style,
)

logger = logging.getLogger(__name__)

METRIC_TITLES = {
    "temperature_c": "Temperature",
    "humidity_pct": "Humidity",
    "pressure_hpa": "Pressure",
    "wind_speed_mps": "Wind Speed",
    "wind_direction_deg": "Wind Direction",
    "wind_gust_mps": "Wind Gust",
    "rain_accumulation_mm": "Rain",
    "rain_rate_mm_per_hour": "Rain Rate",
    "light_intensity_lux": "Light",
    "uv_index": "UV Index",
}

# History rows that fit the panel
HISTORY_ROWS = 12


class TerminalMonitor:
    """Terminal-based dashboard using Rich"""

    def __init__(
        self,
        data_fetcher: DataFetcher,
        console: Optional[Console] = None,
        export_dir: Optional[Path] = None,
    ):
        self.data_fetcher = data_fetcher
        self.console = console or Console()
        self.export_dir = export_dir

    @property
    def display_settings(self) -> DisplaySettings:
        return self.data_fetcher.preferences.display

    def update_display(self, now: Optional[datetime] = None):
        """Update the display with the current snapshot"""
        now = now or datetime.now(timezone.utc)
        try:
            snapshot = self.data_fetcher.get_snapshot(now)
            layout = self.create_layout(snapshot)

            self.console.clear()
            self.console.print(layout)

            if self.export_dir and snapshot.database_connected:
                export_buckets(snapshot.history, self.export_dir, snapshot.window, now.date())

        except Exception as e:
            logger.error(f"Display update failed: {e}")
            self._show_error_display(str(e), now)

    def run(self, interval_seconds: Optional[float] = None):
        """Refresh the display until interrupted"""
        interval = interval_seconds or self.display_settings.refresh_rate * 60
        logger.info(f"Starting dashboard, refreshing every {interval:.0f}s")
        while True:
            self.update_display()
            time.sleep(interval)

    def create_layout(self, snapshot: DashboardSnapshot) -> Layout:
        """Create the main display layout"""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="stations", size=max(len(snapshot.stations), 1) + 4),
            Layout(name="body"),
        )

        layout["body"].split_row(
            Layout(name="left"),
            Layout(name="right"),
        )

        layout["left"].split_column(
            Layout(name="current"),
            Layout(name="alerts", size=8),
        )

        layout["header"].update(self._create_header(snapshot))
        layout["stations"].update(self._create_stations_panel(snapshot))
        layout["current"].update(self._create_current_panel(snapshot))
        layout["alerts"].update(self._create_alerts_panel(snapshot))
        layout["right"].update(self._create_history_panel(snapshot))

        return layout

    def _create_header(self, snapshot: DashboardSnapshot) -> Panel:
        """Create header with title and timestamp"""
        timestamp = format_timestamp(snapshot.generated_at, self.display_settings)
        db_indicator = "ONLINE" if snapshot.database_connected else "OFFLINE"

        header_text = Text()
        header_text.append("WEATHER STATION MONITOR", style="bold cyan")
        header_text.append(f" - {timestamp}", style="white")
        header_text.append(f" - DB: {db_indicator}", style="green" if snapshot.database_connected else "red")

        return Panel(Align.center(header_text), style="cyan")

    def _create_stations_panel(self, snapshot: DashboardSnapshot) -> Panel:
        """Create device list panel"""
        settings = self.display_settings
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Station", style="white")
        table.add_column("Status", width=9)
        table.add_column("Last Active", width=14)
        table.add_column("Temp", width=9)
        table.add_column("Humidity", width=9)
        table.add_column("Pressure", width=11)
        table.add_column("Wind", width=10)
        table.add_column("RSSI", width=9)
        table.add_column("Readings", width=8)

        for station in snapshot.stations:
            summary = station.summary
            metrics = summary.latest.metrics
            rssi = summary.latest.signal.rssi_dbm
            status_style = STATUS_STYLES[summary.status.label]
            indicator = "●" if summary.status.label.value == "Online" else "○"

            table.add_row(
                f"{indicator} {summary.name} ({summary.device_id})",
                Text(summary.status.label.value, style=status_style),
                summary.status.ago_text,
                format_metric("temperature_c", metrics.temperature_c, settings),
                format_metric("humidity_pct", metrics.humidity_pct, settings),
                format_metric("pressure_hpa", metrics.pressure_hpa, settings),
                format_metric("wind_speed_mps", metrics.wind_speed_mps, settings),
                Text(format_value(rssi, " dBm", 0), style=signal_style(rssi)),
                str(summary.reading_count),
            )

        if not snapshot.stations:
            table.add_row("No weather station data available", "", "", "", "", "", "", "", "")

        return Panel(table, title="STATIONS", style="cyan")

    def _selected_station(self, snapshot: DashboardSnapshot) -> Optional[StationView]:
        for station in snapshot.stations:
            if station.summary.device_id == snapshot.device_id:
                return station
        return snapshot.stations[0] if snapshot.stations else None

    def _create_current_panel(self, snapshot: DashboardSnapshot) -> Panel:
        """Create current conditions panel with 24h trends"""
        station = self._selected_station(snapshot)
        if station is None:
            return Panel(Text("No data", style="red"), title="CURRENT CONDITIONS", style="cyan")

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Metric", style="white", width=15)
        table.add_column("Value", style="white", width=12)
        table.add_column("vs 24h", width=10)

        metrics = station.summary.latest.metrics
        for metric in Metrics.names():
            trend_text, trend_style = format_trend(station.trends.get(metric))
            table.add_row(
                METRIC_TITLES[metric],
                format_metric(metric, metrics.get(metric), self.display_settings),
                Text(trend_text, style=trend_style),
            )

        return Panel(table, title=f"CURRENT CONDITIONS - {station.summary.name}", style="cyan")

    def _create_history_panel(self, snapshot: DashboardSnapshot) -> Panel:
        """Create bucketed history panel with series statistics"""
        settings = self.display_settings
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Time", style="white", width=16)
        for metric in CHART_METRICS:
            table.add_column(METRIC_TITLES[metric], width=10)
        table.add_column("n", width=4)

        for bucket in snapshot.history[-HISTORY_ROWS:]:
            label = bucket.bucket_key if bucket.granularity == Granularity.DAY else bucket.bucket_key[5:]
            table.add_row(
                label,
                *[format_metric(metric, bucket.metrics.get(metric), settings) for metric in CHART_METRICS],
                str(bucket.sample_count),
            )

        for name in ("min", "max", "avg"):
            values = []
            for metric in CHART_METRICS:
                stats = snapshot.stats.get(metric)
                values.append(format_metric(metric, getattr(stats, name), settings) if stats else "N/A")
            table.add_row(name.upper(), *values, "", style="bold")

        title = f"HISTORY ({window_label(snapshot.window).upper()}, {snapshot.device_id})"
        return Panel(table, title=title, style="cyan")

    def _create_alerts_panel(self, snapshot: DashboardSnapshot) -> Panel:
        """Create alerts and warnings panel"""
        if not snapshot.alerts:
            content = Text("✓ All systems normal", style="green")
        else:
            content = Text()
            for i, alert in enumerate(snapshot.alerts):
                if i > 0:
                    content.append("\n")
                style = "red" if "error" in alert.lower() or "offline" in alert.lower() else "yellow"
                content.append(alert, style=f"bold {style}")

        return Panel(content, title="ALERTS", style="cyan")

    def _show_error_display(self, error_msg: str, now: datetime):
        """Show error display when the dashboard fails"""
        try:
            self.console.clear()

            error_panel = Panel(
                Align.center(Text(f"DISPLAY ERROR\n\n{error_msg}", style="bold red")),
                title="System Error",
                style="red",
            )

            timestamp = format_timestamp(now, self.display_settings)
            header = Panel(
                Align.center(Text(f"WEATHER STATION MONITOR - {timestamp} - ERROR", style="bold red")),
                style="red",
            )

            layout = Layout()
            layout.split_column(
                Layout(header, size=3),
                Layout(error_panel),
            )

            self.console.print(layout)

        except Exception as e:
            logger.error(f"Failed to show error display: {e}")
