"""User context, preferences and alerts."""

from .session import UserContext
from .settings import (
    AlertThresholds,
    Preferences,
    PreferencesError,
    load_preferences,
    load_user_preferences,
    preferences_path,
    save_preferences,
)
from .alerts import Alert, check_thresholds, generate_alerts

__all__ = [
    "UserContext",
    "AlertThresholds",
    "Preferences",
    "PreferencesError",
    "load_preferences",
    "load_user_preferences",
    "preferences_path",
    "save_preferences",
    "Alert",
    "check_thresholds",
    "generate_alerts",
]
