"""One telemetry cycle: read the thermostat from Netatmo, push it to the device platform."""

import logging

from netatmo_wrapper.config import THERMOSTAT_URN
from netatmo_wrapper.exceptions import DevicePlatformError, SensorPlatformError
from netatmo_wrapper.models import Zone
from netatmo_wrapper.schemas import ThermostatTelemetry

logger = logging.getLogger(__name__)


async def poll_once(zone: Zone) -> None:
    """Forward the zone's current thermostat reading upstream.

    Failures are logged and end the cycle; the next scheduled firing is the retry.
    """
    device = zone.device_session
    if device is None:
        logger.error(f"No device registered for demozone {zone.id}")
        return
    session = zone.sensor_session
    if session is None:
        logger.warning(f"No Netatmo session for demozone {zone.id}, skipping cycle")
        return

    try:
        devices = await session.get_thermostats_data(zone.sensor_identity.device_id)
        telemetry = ThermostatTelemetry.from_thermostats_data(devices)
    except (SensorPlatformError, ValueError, KeyError) as e:
        logger.error(f"Netatmo read failed for demozone {zone.id}: {e}")
        return

    virtual_device = device.virtual_device(THERMOSTAT_URN)
    if virtual_device is None:
        logger.error(f"No virtual device found for demozone {zone.id}")
        return

    payload = telemetry.as_payload()
    logger.debug(f"Sending IoT data for demozone {zone.id}: {payload}")
    try:
        await virtual_device.update(payload)
    except DevicePlatformError as e:
        logger.error(f"Telemetry push failed for demozone {zone.id}: {e}")
