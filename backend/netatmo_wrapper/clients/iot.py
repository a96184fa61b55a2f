"""IoT device platform: directly connected devices and admin action calls.

Each demozone is a directly connected device whose credentials live in a
``<ZONE>.conf`` JSON file. Once activated, the device exposes one virtual device
per model URN; telemetry goes out as DATA messages and any pending action
requests come back in the message response.
"""

import inspect
import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from netatmo_wrapper.config import IOT_ACTION_URI
from netatmo_wrapper.exceptions import DevicePlatformError
from netatmo_wrapper.models import IotAction

logger = logging.getLogger(__name__)

TOKEN_PATH = "/iot/api/v2/oauth2/token"
ACTIVATION_PATH = "/iot/api/v2/activation/direct"
DEVICE_MODEL_PATH = "/iot/api/v2/deviceModels/{urn}"
MESSAGES_PATH = "/iot/api/v2/messages"

ACTIVATION_SCOPE = "oracle/iot/activation"

ActionHandler = Callable[[str], Awaitable[Any] | Any]


@dataclass
class DeviceCredentials:
    """Contents of a device credential file."""

    endpoint_id: str
    shared_secret: str
    activated: bool = False

    @classmethod
    def load(cls, path: Path) -> "DeviceCredentials":
        try:
            raw = json.loads(path.read_text())
            return cls(
                endpoint_id=raw["endpoint_id"],
                shared_secret=raw["shared_secret"],
                activated=bool(raw.get("activated", False)),
            )
        except (OSError, ValueError, KeyError) as e:
            raise DevicePlatformError(f"Invalid device credential file {path}: {e}") from e

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(asdict(self), indent=2))


class VirtualDevice:
    """One device model instance of an activated device."""

    def __init__(self, device: "IotDevice", urn: str, model: dict[str, Any]):
        self.device = device
        self.urn = urn
        self.attributes = {a["name"] for a in model.get("attributes", []) if "name" in a}
        self.on_execute: dict[str, ActionHandler] = {}

    async def update(self, data: dict[str, Any]) -> None:
        """Send attribute values as a DATA message."""
        unknown = set(data) - self.attributes
        if unknown and self.attributes:
            logger.warning(f"Dropping attributes not in model {self.urn}: {sorted(unknown)}")
            data = {k: v for k, v in data.items() if k in self.attributes}
        message = {
            "clientId": str(uuid.uuid4()),
            "source": self.device.endpoint_id,
            "destination": "",
            "priority": "MEDIUM",
            "reliability": "BEST_EFFORT",
            "eventTime": int(datetime.now(UTC).timestamp() * 1000),
            "type": "DATA",
            "payload": {"format": f"{self.urn}:attributes", "data": data},
        }
        await self.device.send_messages([message])

    async def execute(self, action: str, value: str) -> None:
        handler = self.on_execute.get(action)
        if handler is None:
            logger.warning(f"No handler for action {action} of {self.urn}")
            return
        result = handler(value)
        if inspect.isawaitable(result):
            await result


class IotDevice:
    """A directly connected device backed by a credential file."""

    def __init__(self, name: str, store_file: Path, urns: list[str], client: httpx.AsyncClient):
        self.name = name
        self.store_file = store_file
        self.urns = urns
        self._client = client
        self._credentials: DeviceCredentials | None = None
        self._token: str | None = None
        self._virtual_devices: dict[str, VirtualDevice] = {}

    @property
    def endpoint_id(self) -> str | None:
        return self._credentials.endpoint_id if self._credentials else None

    @property
    def activated(self) -> bool:
        return bool(self._credentials and self._credentials.activated)

    async def initialize(self) -> None:
        """Activate if needed and create a virtual device per model URN."""
        logger.info(f"Initializing IoT device '{self.name}'")
        self._credentials = DeviceCredentials.load(self.store_file)
        if not self.activated:
            await self.activate()
        else:
            logger.debug(f"'{self.name}' device is already activated")
        self._token = await self._request_token(scope="")

        for urn in self.urns:
            model = await self.get_device_model(urn)
            self.create_virtual_device(urn, model)
            logger.debug(f"'{urn}' initialized successfully")

    async def activate(self) -> None:
        logger.debug(f"Activating IoT device '{self.name}'")
        token = await self._request_token(scope=ACTIVATION_SCOPE)
        response = await self._post(
            ACTIVATION_PATH, token, json={"deviceModels": self.urns}
        )
        state = response.json().get("state") if response.content else None
        if state not in (None, "ACTIVATED"):
            raise DevicePlatformError(
                f"Device '{self.name}' activated, but not marked as active (state {state})"
            )
        self._credentials.activated = True
        self._credentials.save(self.store_file)

    async def get_device_model(self, urn: str) -> dict[str, Any]:
        try:
            response = await self._client.get(
                DEVICE_MODEL_PATH.format(urn=urn),
                headers={"Authorization": f"Bearer {self._token}"},
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DevicePlatformError(f"Error retrieving '{urn}' model: {e}") from e

    def create_virtual_device(self, urn: str, model: dict[str, Any]) -> VirtualDevice:
        virtual_device = VirtualDevice(self, urn, model)
        self._virtual_devices[urn] = virtual_device
        return virtual_device

    def virtual_device(self, urn: str) -> VirtualDevice | None:
        return self._virtual_devices.get(urn)

    async def send_messages(self, messages: list[dict[str, Any]]) -> None:
        """Post messages and dispatch any action requests returned with the response."""
        if self._token is None:
            raise DevicePlatformError(f"Device '{self.name}' is not initialized")
        response = await self._post(MESSAGES_PATH, self._token, json=messages)
        requests = response.json() if response.content else []
        for request in requests if isinstance(requests, list) else []:
            await self._dispatch(request)

    def close(self) -> None:
        self._virtual_devices.clear()
        self._token = None
        logger.info(f"IoT device '{self.name}' closed")

    # --- Internals ---

    async def _dispatch(self, request: dict[str, Any]) -> None:
        if request.get("type") != "REQUEST":
            return
        payload = request.get("payload", {})
        # url looks like deviceModels/<urn>/actions/<action>
        _, _, path = payload.get("url", "").partition("deviceModels/")
        urn, _, action = path.partition("/actions/")
        virtual_device = self._virtual_devices.get(urn)
        if virtual_device is None or not action:
            logger.warning(f"Ignoring request for unknown target {payload.get('url')!r}")
            return
        try:
            body = json.loads(payload.get("body") or "{}")
        except ValueError:
            logger.warning(f"Ignoring request with malformed body for {action}")
            return
        await virtual_device.execute(action, body.get("value"))

    async def _request_token(self, scope: str) -> str:
        data = {
            "grant_type": "client_credentials",
            "client_id": self._credentials.endpoint_id,
            "client_secret": self._credentials.shared_secret,
            "scope": scope,
        }
        try:
            response = await self._client.post(TOKEN_PATH, data=data)
            response.raise_for_status()
            return response.json()["access_token"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise DevicePlatformError(f"Token request for '{self.name}' failed: {e}") from e

    async def _post(self, path: str, token: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.post(
                path, headers={"Authorization": f"Bearer {token}"}, **kwargs
            )
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise DevicePlatformError(f"Request to {path} for '{self.name}' failed: {e}") from e


class IotActionClient:
    """Invokes device-model actions through the platform's admin API."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def invoke(self, action: IotAction, value: str) -> str | None:
        """Invoke ``action`` with ``value`` and return the request status."""
        uri = IOT_ACTION_URI.format(
            app=action.app_id, device=action.device_id, urn=action.urn, action=action.action
        )
        logger.debug(f"Sending request to {uri}: {value}")
        try:
            response = await self._client.post(uri, json={"value": value})
            response.raise_for_status()
            status = response.json().get("status")
        except (httpx.HTTPError, ValueError) as e:
            raise DevicePlatformError(str(e)) from e
        logger.debug(f"Request sent. Status: {status}")
        return status
