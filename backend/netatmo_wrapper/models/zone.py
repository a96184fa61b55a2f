"""Zone model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netatmo_wrapper.clients.iot import IotDevice
    from netatmo_wrapper.clients.netatmo import NetatmoSession


class ZoneStatus(StrEnum):
    """Scheduling status of a demozone."""

    DISABLED = "DISABLED"  # no device credentials at startup, never scheduled
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class SensorStatus(StrEnum):
    """Connection status of a zone's Netatmo session."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class SensorIdentity:
    """Credentials and identifiers used to reach a zone's Netatmo thermostat."""

    client_id: str
    client_secret: str
    username: str
    password: str
    device_id: str
    module_id: str


@dataclass(frozen=True)
class IotAction:
    """Coordinates of the device-platform action that sets a zone's temperature."""

    app_id: str
    device_id: str
    urn: str
    action: str


@dataclass
class SensorState:
    """Last known state of a zone's Netatmo session, for status reporting."""

    status: SensorStatus = SensorStatus.DISCONNECTED
    message: str | None = None

    def update(self, status: SensorStatus, message: str | None = None) -> None:
        self.status = status
        self.message = message


@dataclass
class Zone:
    """A demozone: one independently controllable thermostat installation."""

    id: str
    sensor_identity: SensorIdentity
    poll_period_seconds: float
    iot_action: IotAction | None = None
    status: ZoneStatus = ZoneStatus.STOPPED

    # Collaborator sessions, exclusively owned by the zone
    device_session: IotDevice | None = field(default=None, repr=False)
    sensor_session: NetatmoSession | None = field(default=None, repr=False)
    sensor_state: SensorState | None = None

    @property
    def enabled(self) -> bool:
        return self.status is not ZoneStatus.DISABLED

    @property
    def credential_file(self) -> str:
        """Name of the device credential file for this zone."""
        return f"{self.id}.conf"
