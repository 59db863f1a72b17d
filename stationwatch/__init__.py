"""StationWatch - weather station telemetry monitoring."""

__version__ = "0.1.0"
