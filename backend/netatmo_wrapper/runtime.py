"""Process-wide state: zones, scheduler, bridges and collaborator clients."""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import httpx
from fastapi import Request

from netatmo_wrapper import config
from netatmo_wrapper.clients import IotActionClient, IotDevice, NetatmoSession, SetupClient
from netatmo_wrapper.exceptions import SensorPlatformError
from netatmo_wrapper.models import SensorState, Zone
from netatmo_wrapper.services import CommandBridge, ZoneRegistry, ZoneScheduler, poll_once

logger = logging.getLogger(__name__)

DeviceFactory = Callable[[Zone, Path], IotDevice]
SensorFactory = Callable[[Zone, SensorState], NetatmoSession]


class Runtime:
    """Owns the zone registry and everything that acts on it."""

    def __init__(
        self,
        registry: ZoneRegistry,
        setup_client: SetupClient,
        action_client: IotActionClient,
        device_factory: DeviceFactory,
        sensor_factory: SensorFactory,
        store_dir: Path = Path("."),
        http_clients: list[httpx.AsyncClient] | None = None,
    ):
        self.registry = registry
        self.setup_client = setup_client
        self.action_client = action_client
        self.scheduler = ZoneScheduler(registry, poll_once)
        self.commands = CommandBridge(registry, setup_client)
        self.store_dir = store_dir
        self._device_factory = device_factory
        self._sensor_factory = sensor_factory
        self._http_clients = http_clients or []

    @classmethod
    async def bootstrap(cls) -> "Runtime":
        """Build the runtime from configuration and bring every zone online.

        Raises SetupError or DevicePlatformError, both fatal at startup.
        """
        setup_http = httpx.AsyncClient(
            base_url=f"https://{config.SETUP_HOST}",
            verify=config.VERIFY_TLS,
            timeout=config.HTTP_TIMEOUT,
        )
        iot_http = httpx.AsyncClient(
            base_url=f"https://{config.IOT_HOST}",
            verify=config.VERIFY_TLS,
            timeout=config.HTTP_TIMEOUT,
        )
        admin_http = httpx.AsyncClient(
            base_url=f"https://{config.IOT_HOST}",
            auth=(config.IOT_USERNAME, config.IOT_PASSWORD),
            verify=config.VERIFY_TLS,
            timeout=config.HTTP_TIMEOUT,
        )
        netatmo_http = httpx.AsyncClient(
            base_url=config.NETATMO_BASE_URL,
            timeout=config.HTTP_TIMEOUT,
        )

        def device_factory(zone: Zone, store_file: Path) -> IotDevice:
            return IotDevice(zone.id, store_file, [config.THERMOSTAT_URN], iot_http)

        def sensor_factory(zone: Zone, state: SensorState) -> NetatmoSession:
            return NetatmoSession(zone.id, zone.sensor_identity, state, netatmo_http)

        setup_client = SetupClient(setup_http)
        runtime = cls(
            registry=ZoneRegistry(),
            setup_client=setup_client,
            action_client=IotActionClient(admin_http),
            device_factory=device_factory,
            sensor_factory=sensor_factory,
            store_dir=Path(config.DEVICE_STORE_DIR),
            http_clients=[setup_http, iot_http, admin_http, netatmo_http],
        )
        try:
            await runtime.load_zones(config.POLL_INTERVAL)
            runtime.check_device_files()
            await runtime.initialize_devices()
            await runtime.initialize_sensors()
        except BaseException:
            await runtime.aclose()
            raise
        return runtime

    async def load_zones(self, poll_period_seconds: float) -> None:
        for demozone in await self.setup_client.fetch_demozones():
            self.registry.add(demozone.to_zone(poll_period_seconds))

    def check_device_files(self) -> None:
        """Disable every zone that has no device credential file."""
        for zone in self.registry.enabled():
            if self._store_file(zone).exists():
                logger.debug(f"Enabling demozone {zone.id}")
            else:
                logger.error(
                    f"Demozone {zone.id} does not have IoT configuration file available "
                    f"({zone.credential_file}). Ignoring."
                )
                self.registry.mark_disabled(zone.id)

    # --- Device platform ---

    async def initialize_devices(self) -> None:
        """Bring up a device session per enabled zone. Raises DevicePlatformError."""
        logger.info("Initializing IoT devices")
        for zone in self.registry.enabled():
            store_file = self._store_file(zone)
            if not store_file.exists():
                logger.error(f"Credential file {store_file} for demozone {zone.id} disappeared")
                continue
            device = self._device_factory(zone, store_file)
            await device.initialize()
            virtual_device = device.virtual_device(config.THERMOSTAT_URN)
            if virtual_device is not None:
                virtual_device.on_execute[config.SET_POINT_ACTION] = self.commands.on_setpoint_command
            zone.device_session = device
        logger.info("IoT devices initialized successfully")

    def shutdown_devices(self) -> None:
        logger.info("Shutting down IoT devices")
        for zone in self.registry.list_zones():
            if zone.device_session is not None:
                zone.device_session.close()
                zone.device_session = None

    async def reset_devices(self) -> None:
        """Re-initialize every device session. Raises DevicePlatformError on the first failure."""
        self.shutdown_devices()
        await self.initialize_devices()

    # --- Netatmo ---

    async def initialize_sensors(self) -> None:
        """Authenticate a Netatmo session per enabled zone.

        Authentication failures are recorded on the zone's sensor state.
        """
        await asyncio.gather(*(self._connect_sensor(zone) for zone in self.registry.enabled()))

    async def _connect_sensor(self, zone: Zone) -> None:
        logger.info(f"Enabling Netatmo device for demozone {zone.id}")
        state = SensorState()
        zone.sensor_state = state
        session = self._sensor_factory(zone, state)
        try:
            await session.authenticate()
        except SensorPlatformError as e:
            logger.error(f"Error in Netatmo device for demozone {zone.id}: {e}")
            return
        zone.sensor_session = session

    def shutdown_sensors(self) -> None:
        logger.info("Clearing Netatmo devices")
        for zone in self.registry.list_zones():
            zone.sensor_session = None
            zone.sensor_state = None

    async def reset_sensors(self) -> None:
        self.shutdown_sensors()
        await self.initialize_sensors()

    # --- Lifecycle ---

    async def aclose(self) -> None:
        self.scheduler.shutdown()
        await self.commands.drain()
        self.shutdown_devices()
        self.shutdown_sensors()
        for client in self._http_clients:
            await client.aclose()

    def _store_file(self, zone: Zone) -> Path:
        return self.store_dir / zone.credential_file


def get_runtime(request: Request) -> Runtime:
    """Dependency returning the runtime created at startup."""
    return request.app.state.runtime
