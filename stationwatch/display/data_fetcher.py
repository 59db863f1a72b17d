"""
Data Fetcher for the Dashboard
Builds dashboard snapshots from the record store with graceful error handling and caching.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional

from stationwatch.shared.database import RecordStorage
from stationwatch.shared.models import Bucket, DeviceSummary, Reading
from stationwatch.preferences.alerts import generate_alerts
from stationwatch.preferences.settings import Preferences
from stationwatch.telemetry.aggregator import aggregate
from stationwatch.telemetry.devices import summarize_devices
from stationwatch.telemetry.normalizer import normalize_records
from stationwatch.telemetry.stats import SeriesStats, series_stats
from stationwatch.telemetry.trend import REFERENCE_AGE, station_trends
from stationwatch.telemetry.windows import ALL_DEVICES, WindowSpec, select_window, window_bounds

logger = logging.getLogger(__name__)

# Metrics shown in the history chart and statistics
CHART_METRICS = [
    "temperature_c",
    "humidity_pct",
    "pressure_hpa",
    "wind_speed_mps",
    "light_intensity_lux",
    "rain_accumulation_mm",
]

# A cached snapshot is served this long after the last successful fetch
CACHE_MAX_AGE = timedelta(minutes=5)

# Extra history fetched so the 24h trend reference exists at the window edge
TREND_MARGIN = timedelta(hours=1)


@dataclass
class StationView:
    """One station with its trends"""
    summary: DeviceSummary
    trends: Dict[str, Optional[float]]


@dataclass
class DashboardSnapshot:
    """Everything the dashboard shows at one point in time"""
    database_connected: bool
    generated_at: datetime
    window: WindowSpec
    device_id: str
    stations: List[StationView] = field(default_factory=list)
    history: List[Bucket] = field(default_factory=list)
    stats: Dict[str, Optional[SeriesStats]] = field(default_factory=dict)
    alerts: List[str] = field(default_factory=list)


class DataFetcher:
    """Fetches and caches dashboard data with graceful error handling"""

    def __init__(
        self,
        storage: RecordStorage,
        preferences: Preferences,
        window: WindowSpec,
        device_id: str = ALL_DEVICES,
        online_threshold_minutes: Optional[float] = None,
        history_limit: int = 1000,
        tz: Optional[tzinfo] = None,
    ):
        self.storage = storage
        self.preferences = preferences
        self.window = window
        self.device_id = device_id
        if online_threshold_minutes is None:
            online_threshold_minutes = preferences.advanced.online_threshold_minutes
        self.online_threshold_minutes = online_threshold_minutes
        self.history_limit = history_limit
        # Calendar zone for custom ranges and buckets, None is the system zone
        self.tz = tz
        self.last_successful_fetch: Optional[datetime] = None
        self.cached_snapshot: Optional[DashboardSnapshot] = None

    def get_snapshot(self, now: datetime) -> DashboardSnapshot:
        """Get the current dashboard snapshot with error handling"""
        try:
            return self._fetch_snapshot(now)
        except Exception as e:
            logger.error(f"Failed to fetch dashboard data: {e}")
            return self._get_fallback_snapshot(str(e), now)

    def _fetch_snapshot(self, now: datetime) -> DashboardSnapshot:
        """Fetch and assemble a snapshot from the record store"""
        latest = normalize_records(self.storage.get_latest_records(self.history_limit))
        summaries = summarize_devices(latest, now, self.online_threshold_minutes)

        readings = self._fetch_history(now)
        selected = select_window(readings, self.window, now, self.device_id, tz=self.tz)
        history = aggregate(selected, self.window, tz=self.tz)

        stations = [
            StationView(
                summary=summary,
                trends=station_trends(self._device_readings(readings, summary.latest), now),
            )
            for summary in summaries
        ]

        alerts = generate_alerts(summaries, self.preferences.notifications.alert_thresholds)

        snapshot = DashboardSnapshot(
            database_connected=True,
            generated_at=now,
            window=self.window,
            device_id=self.device_id,
            stations=stations,
            history=history,
            stats={metric: series_stats(history, metric) for metric in CHART_METRICS},
            alerts=[alert.message for alert in alerts],
        )

        self.last_successful_fetch = now
        self.cached_snapshot = snapshot
        return snapshot

    def _fetch_history(self, now: datetime) -> List[Reading]:
        """Readings covering the history window and the trend reference point"""
        start, end = window_bounds(self.window, now, self.tz)
        start = min(start, now - REFERENCE_AGE - TREND_MARGIN)
        end = max(end, now)

        device_filter = None if self.device_id == ALL_DEVICES else self.device_id
        records = self.storage.get_historical_records(start, end, device_filter)
        return normalize_records(records)

    def _device_readings(self, readings: List[Reading], latest: Reading) -> List[Reading]:
        device_readings = [r for r in readings if r.device_id == latest.device_id]
        # The latest record may predate the fetched history
        if not any(r.received_at == latest.received_at for r in device_readings):
            device_readings.append(latest)
        return device_readings

    def _get_fallback_snapshot(self, error_msg: str, now: datetime) -> DashboardSnapshot:
        """Return fallback snapshot when data fetch fails"""
        # Use cached snapshot if available and recent
        if (self.cached_snapshot and self.last_successful_fetch and
                now - self.last_successful_fetch < CACHE_MAX_AGE):
            cached = self.cached_snapshot
            cached.database_connected = False
            cached.alerts = [f"Database error: {error_msg}"] + [
                alert for alert in cached.alerts if not alert.startswith("Database error:")
            ]
            return cached

        return DashboardSnapshot(
            database_connected=False,
            generated_at=now,
            window=self.window,
            device_id=self.device_id,
            alerts=[f"System error: {error_msg}"],
        )
