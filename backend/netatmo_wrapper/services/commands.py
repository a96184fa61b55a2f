"""Relay of set-point commands from the device platform to Netatmo."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx

from netatmo_wrapper.clients.setup import SetupClient
from netatmo_wrapper.config import MAX_TARGET_TEMP, MIN_TARGET_TEMP, SETPOINT_DURATION_MINUTES
from netatmo_wrapper.exceptions import SensorPlatformError
from netatmo_wrapper.models import Zone
from netatmo_wrapper.services._numbers import parse_number
from netatmo_wrapper.services.registry import ZoneRegistry

logger = logging.getLogger(__name__)


class CommandBridge:
    """Handles the thermostat model's SetSetPointTemp action."""

    def __init__(
        self,
        registry: ZoneRegistry,
        setup_client: SetupClient,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self._registry = registry
        self._setup_client = setup_client
        self._clock = clock
        # Pending target-temperature writes, kept referenced until they finish
        self._persists: set[asyncio.Task] = set()

    async def on_setpoint_command(self, raw_value: str) -> list[str]:
        """Apply a ``<deviceId>/<temperature>`` command to every matching zone.

        Returns the ids of the zones the command was relayed to. Out-of-range
        or malformed commands are ignored.
        """
        logger.info(f"SetSetPointTemp invoked from the device platform with {raw_value!r}")
        parts = str(raw_value).split("/")
        device_id = parts[0]
        temperature = parse_number(parts[1]) if len(parts) > 1 else None
        if temperature is None:
            logger.warning(f"Ignoring set-point command {raw_value!r}: no valid temperature")
            return []
        if not MIN_TARGET_TEMP <= temperature <= MAX_TARGET_TEMP:
            logger.debug(f"Ignoring requested temperature {temperature}. Out of bounds")
            return []

        zones = [z for z in self._registry.find_by_device_id(device_id) if z.sensor_session]
        if not zones:
            logger.warning(f"No connected demozone matches Netatmo device {device_id}")
            return []
        results = await asyncio.gather(*(self._relay(zone, temperature) for zone in zones))
        return [zone.id for zone, relayed in zip(zones, results) if relayed]

    async def _relay(self, zone: Zone, temperature: int | float) -> bool:
        identity = zone.sensor_identity
        logger.debug(
            f"Matching device in demozone {zone.id}, module: {identity.module_id}, "
            f"device: {identity.device_id}"
        )
        end_time = self._clock() + timedelta(minutes=SETPOINT_DURATION_MINUTES)
        try:
            response = await zone.sensor_session.set_thermpoint(
                device_id=identity.device_id,
                module_id=identity.module_id,
                setpoint_mode="manual",
                setpoint_temp=temperature,
                setpoint_endtime=int(end_time.timestamp()),
            )
        except SensorPlatformError as e:
            logger.error(f"Set-point push failed for demozone {zone.id}: {e}")
            return False
        logger.debug(f"Set-point response for demozone {zone.id}: {response}")

        task = asyncio.create_task(
            self._persist(zone.id, temperature), name=f"persist-target-{zone.id}"
        )
        self._persists.add(task)
        task.add_done_callback(self._persists.discard)
        return True

    async def drain(self) -> None:
        """Wait for every pending target-temperature write."""
        if self._persists:
            await asyncio.gather(*self._persists)

    async def _persist(self, zone_id: str, temperature: int | float) -> None:
        try:
            await self._setup_client.persist_target_temperature(zone_id, temperature)
        except httpx.HTTPError as e:
            logger.error(f"Could not persist target temperature for demozone {zone_id}: {e}")
