"""Pydantic schemas for setup records, admin responses and telemetry."""

from netatmo_wrapper.schemas.admin import (
    IntervalRequest,
    LoopStatus,
    SensorStatusView,
    SetTemperatureResult,
    TimerStatus,
    ZoneStatusView,
)
from netatmo_wrapper.schemas.setup import DemozoneSetup
from netatmo_wrapper.schemas.telemetry import ThermostatTelemetry

__all__ = [
    # Admin schemas
    "IntervalRequest",
    "LoopStatus",
    "SensorStatusView",
    "SetTemperatureResult",
    "TimerStatus",
    "ZoneStatusView",
    # Upstream schemas
    "DemozoneSetup",
    "ThermostatTelemetry",
]
