"""Uplink Logger Service - Subscribes to network-server uplinks and stores them in MySQL."""

from .logger_service import UplinkLoggerService


def main():
    """Entry point for uplink logger service."""
    from .config import load_config
    from stationwatch.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    service = UplinkLoggerService(config)
    service.run()


__all__ = ["UplinkLoggerService", "main"]
