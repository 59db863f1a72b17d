"""Terminal dashboard service."""

from .terminal_monitor import TerminalMonitor
from .data_fetcher import DataFetcher, DashboardSnapshot


def main():
    """Entry point for dashboard service."""
    from .config import load_config
    from stationwatch.shared.logging import setup_logging
    from stationwatch.shared.database import RecordStorage
    from stationwatch.preferences.settings import load_user_preferences

    config = load_config()
    preferences = load_user_preferences(config.user, config.preferences_dir)
    setup_logging(config.log_level, log_file=config.log_file, debug=preferences.advanced.debug_mode)

    storage = RecordStorage(config.db_config)
    fetcher = DataFetcher(
        storage,
        preferences,
        window=config.window,
        device_id=config.device_id,
        online_threshold_minutes=config.online_threshold_minutes,
        history_limit=config.history_limit,
        tz=config.tz,
    )
    monitor = TerminalMonitor(fetcher, export_dir=config.export_dir)

    try:
        monitor.run(config.refresh_interval)
    except KeyboardInterrupt:
        pass
    finally:
        storage.close()


__all__ = ["TerminalMonitor", "DataFetcher", "DashboardSnapshot", "main"]
