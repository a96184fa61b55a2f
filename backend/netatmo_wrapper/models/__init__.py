"""In-memory domain models."""

from netatmo_wrapper.models.schedule import AutoStopTimer, ScheduledPoll
from netatmo_wrapper.models.zone import (
    IotAction,
    SensorIdentity,
    SensorState,
    SensorStatus,
    Zone,
    ZoneStatus,
)

__all__ = [
    "Zone",
    "ZoneStatus",
    "SensorIdentity",
    "SensorState",
    "SensorStatus",
    "IotAction",
    "ScheduledPoll",
    "AutoStopTimer",
]
