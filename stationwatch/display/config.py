"""Configuration loading for the dashboard service."""

import logging
from dataclasses import dataclass
from datetime import date, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from stationwatch.shared.config import get_log_level, get_repo_root, get_section, load_yaml_config
from stationwatch.shared.database import DBConfig
from stationwatch.preferences.session import UserContext
from stationwatch.telemetry.liveness import DEFAULT_ONLINE_THRESHOLD_MINUTES
from stationwatch.telemetry.windows import ALL_DEVICES, CustomRange, Window, WindowSpec, validate_range

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Dashboard configuration."""
    db_config: DBConfig
    window: WindowSpec = Window.DAY
    device_id: str = ALL_DEVICES
    online_threshold_minutes: Optional[float] = None  # None follows user preferences
    history_limit: int = 1000
    refresh_interval: Optional[int] = None  # seconds, None follows user preferences
    preferences_dir: Optional[Path] = None
    export_dir: Optional[Path] = None
    log_file: Optional[Path] = None
    tz: Optional[tzinfo] = None  # None uses the system zone
    user: Optional[UserContext] = None
    log_level: str = "INFO"


def parse_window(data: dict, tz: Optional[tzinfo] = None) -> WindowSpec:
    """Read the history window from the 'history' config block.

    Raises:
        ValueError: If the window name is unknown or a custom range is
            incomplete or reversed.
    """
    name = str(data.get("window", "day")).lower()
    if name != "custom":
        return Window(name)

    start, end = data.get("start"), data.get("end")
    if not isinstance(start, date) or not isinstance(end, date):
        raise ValueError("Custom history window needs 'start' and 'end' dates")
    return validate_range(CustomRange(start=start, end=end), tz)


def _optional_path(value) -> Optional[Path]:
    return Path(value) if value else None


def load_config(path: Optional[str] = None) -> Config:
    """Load dashboard configuration from YAML with environment variable support.

    Args:
        path: Path to config file. If None, uses config/config-{env}.yaml.

    Returns:
        Config object with all settings loaded.
    """
    config_data = load_yaml_config(path)

    dashboard = get_section(config_data, "dashboard")
    history = get_section(config_data, "history")
    repo_root = get_repo_root()
    tz = ZoneInfo(dashboard["timezone"]) if dashboard.get("timezone") else None

    user = None
    if config_data.get("user"):
        user = UserContext.from_dict(get_section(config_data, "user"))

    return Config(
        db_config=DBConfig.from_env(),
        window=parse_window(history, tz),
        device_id=str(history.get("device_id", ALL_DEVICES)),
        online_threshold_minutes=dashboard.get("online_threshold_minutes"),
        history_limit=int(dashboard.get("history_limit", 1000)),
        refresh_interval=dashboard.get("refresh_interval"),
        preferences_dir=_optional_path(dashboard.get("preferences_dir")) or repo_root / "config" / "preferences",
        export_dir=_optional_path(dashboard.get("export_dir")),
        log_file=_optional_path(dashboard.get("log_file")) or repo_root / "logs" / "dashboard.log",
        tz=tz,
        user=user,
        log_level=get_log_level(config_data),
    )
