"""Configuration loading for the uplink logger service."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from stationwatch.shared.config import get_log_level, get_section, load_yaml_config
from stationwatch.shared.database import DBConfig
from stationwatch.shared.mqtt import MQTTConfig

logger = logging.getLogger(__name__)

# Every application and device of the connected tenant
DEFAULT_SUBSCRIPTION = "v3/+/devices/+/up"


@dataclass
class Config:
    """Main configuration container."""
    mqtt: MQTTConfig
    db: DBConfig
    subscriptions: List[str] = field(default_factory=lambda: [DEFAULT_SUBSCRIPTION])
    ensure_schema: bool = True
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the config file. If not provided, uses
                    config/config-{env}.yaml at the repo root.

    Returns:
        Config object with all settings loaded.
    """
    config_data = load_yaml_config(config_path)

    # MQTT broker from the YAML, database credentials from the environment
    mqtt_config = MQTTConfig.from_dict(get_section(config_data, "mqtt"))
    db_config = DBConfig.from_env()

    service_data = get_section(config_data, "uplink_logger")
    subscriptions = [str(pattern) for pattern in service_data.get("subscriptions", [])]

    return Config(
        mqtt=mqtt_config,
        db=db_config,
        subscriptions=subscriptions or [DEFAULT_SUBSCRIPTION],
        ensure_schema=bool(service_data.get("ensure_schema", True)),
        log_level=get_log_level(config_data),
    )
