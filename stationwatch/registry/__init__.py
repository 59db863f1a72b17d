"""Weather station device registry."""

from .service import (
    DeviceNotFoundError,
    DeviceRegistration,
    DeviceRegistry,
    DeviceValidationError,
    RegistryError,
)

__all__ = [
    "DeviceNotFoundError",
    "DeviceRegistration",
    "DeviceRegistry",
    "DeviceValidationError",
    "RegistryError",
]
