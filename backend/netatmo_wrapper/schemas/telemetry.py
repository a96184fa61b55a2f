"""Telemetry pushed to the device platform."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ThermostatTelemetry(BaseModel):
    """Attributes of the thermostat device model."""

    model_config = ConfigDict(populate_by_name=True)

    device_id: str = Field(serialization_alias="deviceId")
    module_mac: str = Field(serialization_alias="moduleMac")
    module_name: str | None = Field(default=None, serialization_alias="moduleName")
    setpoint_temp: float | None = Field(default=None, serialization_alias="setpointTemp")
    temperature: float | None = None

    @classmethod
    def from_thermostats_data(cls, devices: list[dict[str, Any]]) -> "ThermostatTelemetry":
        """Map a getthermostatsdata device list onto the device model.

        Only the first device and its first module are reported.
        Raises ValueError when the list lacks a device or module.
        """
        if not devices or not devices[0].get("modules"):
            raise ValueError("Thermostat data contains no device or module")
        device = devices[0]
        module = device["modules"][0]
        measured = module.get("measured") or {}
        return cls(
            device_id=device["_id"],
            module_mac=module["_id"],
            module_name=device.get("station_name"),
            setpoint_temp=measured.get("setpoint_temp"),
            temperature=measured.get("temperature"),
        )

    def as_payload(self) -> dict[str, Any]:
        """Serialize with the device-model attribute names."""
        return self.model_dump(by_alias=True)
