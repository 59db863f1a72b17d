"""Device registry: add, edit, delete and list weather stations.

Devices are not stored separately; a station exists as long as it has
records. Registering a device writes a placeholder record without weather
metrics so the station shows up before its first uplink.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from stationwatch.shared.database import RecordStorage
from stationwatch.shared.models import DeviceSummary, Reading
from stationwatch.preferences.session import UserContext
from stationwatch.telemetry.devices import summarize_devices
from stationwatch.telemetry.liveness import DEFAULT_ONLINE_THRESHOLD_MINUTES
from stationwatch.telemetry.normalizer import DEFAULT_APPLICATION_ID, normalize_records

logger = logging.getLogger(__name__)

# Port the station firmware sends weather uplinks on
WEATHER_F_PORT = 3


class RegistryError(Exception):
    """Raised when the record store rejects a registry change."""

    pass


class DeviceValidationError(ValueError):
    """Raised when a registration is missing required fields."""

    pass


class DeviceNotFoundError(LookupError):
    """Raised when no record exists for a device."""

    pass


@dataclass
class DeviceRegistration:
    """Fields a user enters to register or edit a station."""
    device_id: str
    application_id: str = DEFAULT_APPLICATION_ID
    device_address: str = ""
    device_eui: str = ""
    join_eui: str = ""
    description: str = ""

    def validate(self):
        if not self.device_id or not self.device_id.strip():
            raise DeviceValidationError("Device ID is required")
        if not self.application_id or not self.application_id.strip():
            raise DeviceValidationError("Application ID is required")


def build_registration_record(
    registration: DeviceRegistration,
    user: UserContext,
    now: datetime,
) -> Dict[str, Any]:
    """Placeholder uplink document announcing a new station."""
    timestamp = now.isoformat()
    return {
        "end_device_ids": {
            "device_id": registration.device_id,
            "application_ids": {"application_id": registration.application_id},
            "dev_addr": registration.device_address or registration.device_id,
            "dev_eui": registration.device_eui,
            "join_eui": registration.join_eui,
        },
        "received_at": timestamp,
        "uplink_message": {
            "decoded_payload": {},
            "f_cnt": 0,
            "f_port": WEATHER_F_PORT,
            "frm_payload": "",
            "rx_metadata": [{"timestamp": timestamp}],
        },
        "created_at": timestamp,
        "created_by": user.user_id,
        "description": registration.description,
    }


class DeviceRegistry:
    """Station CRUD on top of the record store."""

    def __init__(self, storage: RecordStorage, history_limit: int = 1000):
        """Initialize the registry.

        Args:
            storage: Record store holding station records.
            history_limit: Number of most recent records scanned when
                listing devices.
        """
        self.storage = storage
        self.history_limit = history_limit

    def add_device(self, registration: DeviceRegistration, user: UserContext, now: datetime) -> str:
        """Register a station.

        Returns:
            Id of the placeholder record.

        Raises:
            DeviceValidationError: If required fields are missing.
            RegistryError: If the record could not be stored.
        """
        registration.validate()
        logger.info(f"Registering device {registration.device_id} for {user.user_id}")

        record = build_registration_record(registration, user, now)
        record_id = self.storage.store_record(record, received_at=now)
        if record_id is None:
            raise RegistryError(f"Failed to store device {registration.device_id}")

        logger.info(f"Device {registration.device_id} added as record {record_id}")
        return record_id

    def update_device(self, registration: DeviceRegistration, user: UserContext) -> str:
        """Apply edited identifiers and description to a station's latest record.

        Raises:
            DeviceValidationError: If required fields are missing.
            DeviceNotFoundError: If the station has no records.
            RegistryError: If the record could not be updated.
        """
        registration.validate()
        records = self.storage.get_device_records(registration.device_id, limit=1)
        if not records:
            raise DeviceNotFoundError(f"Device {registration.device_id} not found")

        record = dict(records[0])
        record_id = record.pop("id")
        ids = dict(record.get("end_device_ids") or {})
        ids.update({
            "device_id": registration.device_id,
            "application_ids": {"application_id": registration.application_id},
            "dev_addr": registration.device_address or ids.get("dev_addr") or registration.device_id,
            "dev_eui": registration.device_eui,
            "join_eui": registration.join_eui,
        })
        record["end_device_ids"] = ids
        record["description"] = registration.description
        record["updated_by"] = user.user_id

        if not self.storage.update_record(record_id, record):
            raise RegistryError(f"Failed to update device {registration.device_id}")
        logger.info(f"Device {registration.device_id} updated by {user.user_id}")
        return record_id

    def delete_device(self, device_id: str, user: UserContext) -> str:
        """Delete the most recent record of a station.

        Raises:
            DeviceNotFoundError: If the station has no records.
            RegistryError: If the record could not be deleted.
        """
        if not device_id:
            raise DeviceValidationError("No device ID selected")

        record_id = self.storage.find_latest_record_id(device_id)
        if record_id is None:
            raise DeviceNotFoundError(f"Device {device_id} not found")

        if not self.storage.delete_record(record_id):
            raise RegistryError(f"Failed to delete device {device_id}")
        logger.info(f"Deleted record {record_id} of device {device_id} for {user.user_id}")
        return record_id

    def list_devices(
        self,
        now: datetime,
        online_threshold_minutes: float = DEFAULT_ONLINE_THRESHOLD_MINUTES,
    ) -> List[DeviceSummary]:
        """Summaries of every station seen in recent records."""
        readings = normalize_records(self.storage.get_latest_records(self.history_limit))
        return summarize_devices(readings, now, online_threshold_minutes)

    def get_device_history(self, device_id: str, limit: int = 20) -> List[Reading]:
        """Most recent readings of one station, newest first."""
        readings = normalize_records(self.storage.get_device_records(device_id, limit))
        readings.sort(key=lambda r: r.received_at, reverse=True)
        return readings

    def get_device(self, device_id: str, now: datetime,
                   online_threshold_minutes: float = DEFAULT_ONLINE_THRESHOLD_MINUTES) -> Optional[DeviceSummary]:
        """Summary of one station, None if it has no records."""
        readings = normalize_records(self.storage.get_device_records(device_id, self.history_limit))
        summaries = summarize_devices(readings, now, online_threshold_minutes)
        return summaries[0] if summaries else None
