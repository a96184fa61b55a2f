"""Schema of the per-demozone records served by the setup endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from netatmo_wrapper.models import IotAction, SensorIdentity, Zone


class DemozoneSetup(BaseModel):
    """One item of the setup endpoint's ``items`` array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    demozone: str
    client_id: str = Field(alias="clientid")
    client_secret: str = Field(alias="clientsecret")
    username: str
    password: str
    device_id: str = Field(alias="deviceid")
    module_id: str = Field(alias="moduleid")
    # Device-platform action used by the admin SET operation
    iot_app_id: str | None = Field(default=None, alias="iotappid")
    iot_device_id: str | None = Field(default=None, alias="iotdeviceid")
    iot_urn: str | None = Field(default=None, alias="ioturn")
    iot_action: str | None = Field(default=None, alias="iotactioncall")

    def to_zone(self, poll_period_seconds: float) -> Zone:
        """Build the in-memory zone for this record, with a normalized id."""
        action = None
        if self.iot_app_id and self.iot_device_id and self.iot_urn and self.iot_action:
            action = IotAction(
                app_id=self.iot_app_id,
                device_id=self.iot_device_id,
                urn=self.iot_urn,
                action=self.iot_action,
            )
        return Zone(
            id=self.demozone.upper(),
            sensor_identity=SensorIdentity(
                client_id=self.client_id,
                client_secret=self.client_secret,
                username=self.username,
                password=self.password,
                device_id=self.device_id,
                module_id=self.module_id,
            ),
            poll_period_seconds=poll_period_seconds,
            iot_action=action,
        )
