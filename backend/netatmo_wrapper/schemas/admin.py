"""Pydantic schemas for the admin surface."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from netatmo_wrapper.models import SensorStatus, ZoneStatus


class IntervalRequest(BaseModel):
    """Body of the INTERVAL operation."""

    interval: StrictInt | StrictFloat  # seconds


class LoopStatus(BaseModel):
    """Polling state of a zone."""

    status: ZoneStatus
    interval: float | None = None  # only while RUNNING


class TimerStatus(BaseModel):
    """Active auto-stop timer of a zone."""

    model_config = ConfigDict(populate_by_name=True)

    started_at: datetime = Field(serialization_alias="startedAt")
    period: float  # minutes


class SensorStatusView(BaseModel):
    """Netatmo session state of a zone."""

    status: SensorStatus
    message: str | None = None


class ZoneStatusView(BaseModel):
    """STATUS projection of a single demozone."""

    demozone: str
    loop: LoopStatus
    timer: TimerStatus | None = None
    sensor: SensorStatusView | None = None


class SetTemperatureResult(BaseModel):
    """Response of the SET operation."""

    result: str | None = None
