"""User preferences: notifications, display and advanced settings.

Preferences are stored per user as YAML files.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from .session import UserContext

logger = logging.getLogger(__name__)

TEMPERATURE_UNITS = ("celsius", "fahrenheit")
WIND_SPEED_UNITS = ("ms", "kmh", "mph")
TIME_FORMATS = ("24h", "12h")
THEMES = ("light", "dark", "system")


class PreferencesError(ValueError):
    """Raised when a preference value is out of range."""

    pass


@dataclass
class AlertThresholds:
    """Limits that raise an alert.

    Temperature, humidity, wind speed and rain alert when exceeded,
    pressure alerts when the reading falls below the limit.
    """
    temperature: float = 30.0
    humidity: float = 85.0
    pressure: float = 980.0
    wind_speed: float = 15.0
    rain: float = 10.0

    @classmethod
    def from_dict(cls, data: dict) -> "AlertThresholds":
        defaults = cls()
        return cls(
            temperature=float(data.get("temperature", defaults.temperature)),
            humidity=float(data.get("humidity", defaults.humidity)),
            pressure=float(data.get("pressure", defaults.pressure)),
            wind_speed=float(data.get("wind_speed", defaults.wind_speed)),
            rain=float(data.get("rain", defaults.rain)),
        )


@dataclass
class NotificationSettings:
    email: bool = True
    push: bool = True
    sms: bool = False
    alert_thresholds: AlertThresholds = field(default_factory=AlertThresholds)

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationSettings":
        return cls(
            email=bool(data.get("email", True)),
            push=bool(data.get("push", True)),
            sms=bool(data.get("sms", False)),
            alert_thresholds=AlertThresholds.from_dict(data.get("alert_thresholds") or {}),
        )


@dataclass
class DisplaySettings:
    temperature_unit: str = "celsius"
    wind_speed_unit: str = "ms"
    time_format: str = "24h"
    date_format: str = "mmddyyyy"
    theme: str = "light"
    refresh_rate: int = 5  # minutes

    @classmethod
    def from_dict(cls, data: dict) -> "DisplaySettings":
        return cls(
            temperature_unit=data.get("temperature_unit", "celsius"),
            wind_speed_unit=data.get("wind_speed_unit", "ms"),
            time_format=data.get("time_format", "24h"),
            date_format=data.get("date_format", "mmddyyyy"),
            theme=data.get("theme", "light"),
            refresh_rate=int(data.get("refresh_rate", 5)),
        )


@dataclass
class AdvancedSettings:
    data_retention: int = 90  # days
    debug_mode: bool = False
    online_threshold_minutes: int = 30

    @classmethod
    def from_dict(cls, data: dict) -> "AdvancedSettings":
        return cls(
            data_retention=int(data.get("data_retention", 90)),
            debug_mode=bool(data.get("debug_mode", False)),
            online_threshold_minutes=int(data.get("online_threshold_minutes", 30)),
        )


@dataclass
class Preferences:
    """All preferences of one user."""
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    advanced: AdvancedSettings = field(default_factory=AdvancedSettings)

    @classmethod
    def from_dict(cls, data: dict) -> "Preferences":
        """Create preferences from a dictionary, validating choices."""
        prefs = cls(
            notifications=NotificationSettings.from_dict(data.get("notifications") or {}),
            display=DisplaySettings.from_dict(data.get("display") or {}),
            advanced=AdvancedSettings.from_dict(data.get("advanced") or {}),
        )
        prefs.validate()
        return prefs

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self):
        """Check every choice and range.

        Raises:
            PreferencesError: If a value is not allowed.
        """
        display = self.display
        if display.temperature_unit not in TEMPERATURE_UNITS:
            raise PreferencesError(f"Unknown temperature unit: {display.temperature_unit}")
        if display.wind_speed_unit not in WIND_SPEED_UNITS:
            raise PreferencesError(f"Unknown wind speed unit: {display.wind_speed_unit}")
        if display.time_format not in TIME_FORMATS:
            raise PreferencesError(f"Unknown time format: {display.time_format}")
        if display.theme not in THEMES:
            raise PreferencesError(f"Unknown theme: {display.theme}")
        if not 1 <= display.refresh_rate <= 30:
            raise PreferencesError(f"Refresh rate must be 1-30 minutes, got {display.refresh_rate}")
        if not 30 <= self.advanced.data_retention <= 365:
            raise PreferencesError(f"Data retention must be 30-365 days, got {self.advanced.data_retention}")
        if self.advanced.online_threshold_minutes <= 0:
            raise PreferencesError("Online threshold must be positive")

        thresholds = self.notifications.alert_thresholds
        if not -20 <= thresholds.temperature <= 50:
            raise PreferencesError(f"Temperature threshold must be -20..50 C, got {thresholds.temperature}")


def preferences_path(user: UserContext, directory: Union[str, Path]) -> Path:
    """File holding a user's preferences."""
    safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", user.user_id)
    return Path(directory) / f"preferences-{safe_id}.yaml"


def load_preferences(path: Union[str, Path]) -> Preferences:
    """Load preferences from YAML, defaults when the file does not exist."""
    path = Path(path)
    if not path.exists():
        logger.debug(f"No preferences at {path}, using defaults")
        return Preferences()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return Preferences.from_dict(data)


def save_preferences(preferences: Preferences, path: Union[str, Path]) -> Path:
    """Validate and write preferences to YAML."""
    preferences.validate()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(preferences.to_dict(), f, sort_keys=False)
    logger.info(f"Saved preferences to {path}")
    return path


def load_user_preferences(user: Optional[UserContext], directory: Union[str, Path]) -> Preferences:
    """Preferences of the given user, defaults when nobody is signed in."""
    if user is None:
        return Preferences()
    return load_preferences(preferences_path(user, directory))
