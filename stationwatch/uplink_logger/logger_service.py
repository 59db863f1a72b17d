"""Uplink Logger Service - subscribes to uplink topics and stores raw records in MySQL."""

import json
import logging
import signal
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .config import Config
from stationwatch.shared.database import RecordStorage
from stationwatch.shared.mqtt import parse_uplink_topic
from stationwatch.telemetry.normalizer import normalize

logger = logging.getLogger(__name__)


class UplinkLoggerService:
    """Service that subscribes to uplink topics and stores each uplink as a record."""

    def __init__(self, config: Config, storage: Optional[RecordStorage] = None):
        self.config = config
        self.storage = storage or RecordStorage(config.db)
        self.client: Optional[mqtt.Client] = None
        self._running = False

    def _on_connect(self, client: mqtt.Client, userdata, flags, reason_code, properties):
        """Callback when connected to MQTT broker."""
        if reason_code == 0:
            logger.info(f"Connected to MQTT broker at {self.config.mqtt.broker}:{self.config.mqtt.port}")
            for pattern in self.config.subscriptions:
                client.subscribe(pattern, qos=self.config.mqtt.qos)
                logger.info(f"Subscribed to: {pattern}")
        else:
            logger.error(f"Failed to connect to MQTT broker, reason: {reason_code}")

    def _on_disconnect(self, client: mqtt.Client, userdata, disconnect_flags, reason_code, properties):
        """Callback when disconnected from MQTT broker."""
        if reason_code != 0:
            logger.warning(f"Unexpected disconnection from MQTT broker (reason={reason_code})")
        else:
            logger.info("Disconnected from MQTT broker")

    def _on_message(self, client: mqtt.Client, userdata, msg: mqtt.MQTTMessage):
        """Callback when a message is received."""
        try:
            self._process_message(msg.topic, msg.payload)
        except Exception as e:
            logger.error(f"Error processing message from {msg.topic}: {e}")

    def _process_message(self, topic: str, payload: bytes, now: Optional[datetime] = None) -> Optional[str]:
        """Process an incoming uplink message.

        Args:
            topic: The MQTT topic (e.g., "v3/weather-stations@ttn/devices/eui-a840/up")
            payload: The uplink document (JSON bytes)
            now: Fallback receive time when the uplink carries none.

        Returns:
            The stored record id, or None if the message was skipped.
        """
        parsed = parse_uplink_topic(topic)
        if parsed is None:
            logger.debug(f"Ignoring topic with unexpected format: {topic}")
            return None
        application_id, device_id = parsed

        try:
            record = json.loads(payload.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to parse payload from {topic}: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"Ignoring non-object payload from {topic}")
            return None

        self._fill_device_ids(record, application_id, device_id)

        reading = normalize(record)
        if reading is None:
            logger.warning(f"Unrecognised uplink from {topic}")
            return None

        received_at = reading.received_at
        if received_at is None:
            received_at = now or datetime.now(timezone.utc)
            record["received_at"] = received_at.isoformat()

        record_id = self.storage.store_record(record, received_at=received_at)
        if record_id:
            logger.debug(f"Logged uplink {record_id} from {device_id}")
        else:
            logger.warning(f"Failed to store uplink from {topic}")
        return record_id

    @staticmethod
    def _fill_device_ids(record: Dict[str, Any], application_id: str, device_id: str):
        """Take device identity from the topic when the payload lacks it."""
        ids = record.setdefault("end_device_ids", {})
        if not isinstance(ids, dict):
            ids = record["end_device_ids"] = {}
        ids.setdefault("device_id", device_id)
        application_ids = ids.setdefault("application_ids", {})
        if isinstance(application_ids, dict):
            application_ids.setdefault("application_id", application_id)

    def _setup_signal_handlers(self):
        """Set up signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signame = signal.Signals(signum).name
            logger.info(f"Received {signame}, shutting down...")
            self._running = False
            if self.client:
                self.client.disconnect()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

    def _create_client(self) -> mqtt.Client:
        mqtt_config = self.config.mqtt
        client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=mqtt_config.client_id,
        )
        if mqtt_config.username:
            client.username_pw_set(mqtt_config.username, mqtt_config.password)
        if mqtt_config.tls:
            client.tls_set()

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    def run(self):
        """Run the uplink logger service (blocking)."""
        self._setup_signal_handlers()
        self._running = True

        if self.config.ensure_schema:
            self.storage.ensure_schema()

        self.client = self._create_client()

        logger.info(f"Connecting to MQTT broker at {self.config.mqtt.broker}:{self.config.mqtt.port}")

        try:
            self.client.connect(self.config.mqtt.broker, self.config.mqtt.port, keepalive=self.config.mqtt.keepalive)
            self.client.loop_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        except Exception as e:
            logger.error(f"MQTT error: {e}")
        finally:
            self.storage.close()
            logger.info("Uplink logger service stopped")
