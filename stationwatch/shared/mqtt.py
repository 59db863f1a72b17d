"""MQTT configuration and topic helpers."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class MQTTConfig:
    """MQTT broker configuration.

    Network servers such as The Things Stack require a username (the
    application id with its tenant) and an API key as password over TLS.
    """
    broker: str = "localhost"
    port: int = 1883
    client_id: str = "stationwatch-client"
    keepalive: int = 60
    qos: int = 1
    username: Optional[str] = None
    password: Optional[str] = None
    tls: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "MQTTConfig":
        """Create config from dictionary."""
        return cls(
            broker=data.get("broker", "localhost"),
            port=data.get("port", 1883),
            client_id=data.get("client_id", "stationwatch-client"),
            keepalive=data.get("keepalive", 60),
            qos=data.get("qos", 1),
            username=data.get("username"),
            password=data.get("password"),
            tls=data.get("tls", False),
        )


def parse_uplink_topic(topic: str) -> Optional[Tuple[str, str]]:
    """Split an uplink topic into (application_id, device_id).

    Expected format: v3/{application}@{tenant}/devices/{device}/up

    Returns:
        Tuple of application id (without tenant) and device id,
        or None if the topic is not an uplink topic.
    """
    segments = topic.split("/")
    if len(segments) != 5 or segments[2] != "devices" or segments[4] != "up":
        return None

    application = segments[1].split("@", 1)[0]
    device_id = segments[3]
    if not application or not device_id:
        return None
    return application, device_id
