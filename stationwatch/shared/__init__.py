"""Shared utilities for StationWatch services."""

from .models import Reading, Metrics, SignalQuality, Bucket, DeviceStatus, StatusLabel
from .database import DBConfig, RecordStorage
from .config import load_yaml_config, get_config_path
from .mqtt import MQTTConfig
from .logging import setup_logging

__all__ = [
    "Reading",
    "Metrics",
    "SignalQuality",
    "Bucket",
    "DeviceStatus",
    "StatusLabel",
    "DBConfig",
    "RecordStorage",
    "load_yaml_config",
    "get_config_path",
    "MQTTConfig",
    "setup_logging",
]
