"""Netatmo thermostat API session.

One session per demozone, all sharing an ``httpx.AsyncClient`` pointed at
https://api.netatmo.com. Authentication uses the OAuth2 password grant with
refresh-token renewal.
"""

import logging
import time
from typing import Any

import httpx

from netatmo_wrapper.config import NETATMO_SCOPE
from netatmo_wrapper.exceptions import SensorPlatformError
from netatmo_wrapper.models import SensorIdentity, SensorState, SensorStatus

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth2/token"
THERMOSTATS_DATA_PATH = "/api/getthermostatsdata"
SET_THERMPOINT_PATH = "/api/setthermpoint"

# Renew this many seconds before the access token actually expires
TOKEN_EXPIRY_MARGIN = 60
# API error codes meaning the access token is invalid or expired
TOKEN_ERROR_CODES = {2, 3}


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from a Netatmo error response."""
    try:
        error = response.json().get("error")
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(error, dict):
        return error.get("message") or f"error code {error.get('code')}"
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


def _error_code(response: httpx.Response) -> int | None:
    try:
        error = response.json().get("error")
    except ValueError:
        return None
    return error.get("code") if isinstance(error, dict) else None


class NetatmoSession:
    """Authenticated access to one zone's Netatmo thermostat."""

    def __init__(
        self,
        zone_id: str,
        identity: SensorIdentity,
        state: SensorState,
        client: httpx.AsyncClient,
    ):
        self.zone_id = zone_id
        self.identity = identity
        self.state = state
        self._client = client
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._expires_at = 0.0

    @property
    def authenticated(self) -> bool:
        return self._access_token is not None

    async def authenticate(self) -> None:
        """Obtain tokens with the zone's credentials."""
        data = {
            "grant_type": "password",
            "client_id": self.identity.client_id,
            "client_secret": self.identity.client_secret,
            "username": self.identity.username,
            "password": self.identity.password,
            "scope": NETATMO_SCOPE,
        }
        try:
            await self._request_token(data)
        except SensorPlatformError as e:
            self.state.update(SensorStatus.ERROR, str(e))
            raise
        self.state.update(SensorStatus.CONNECTED)
        logger.info(f"Netatmo device for demozone {self.zone_id} successfully authenticated")

    async def get_thermostats_data(self, device_id: str) -> list[dict[str, Any]]:
        """Return the ``devices`` list of getthermostatsdata."""
        body = await self._call("GET", THERMOSTATS_DATA_PATH, params={"device_id": device_id})
        return body.get("devices", [])

    async def set_thermpoint(
        self,
        device_id: str,
        module_id: str,
        setpoint_mode: str,
        setpoint_temp: float | None = None,
        setpoint_endtime: int | None = None,
    ) -> dict[str, Any]:
        """Change the thermostat's set-point mode and, for manual mode, its temperature."""
        data: dict[str, Any] = {
            "device_id": device_id,
            "module_id": module_id,
            "setpoint_mode": setpoint_mode,
        }
        if setpoint_temp is not None:
            data["setpoint_temp"] = setpoint_temp
        if setpoint_endtime is not None:
            data["setpoint_endtime"] = setpoint_endtime
        logger.debug(f"Setting thermpoint for demozone {self.zone_id} with {data}")
        return await self._call("POST", SET_THERMPOINT_PATH, data=data)

    # --- Internals ---

    async def _request_token(self, data: dict[str, str]) -> None:
        try:
            response = await self._client.post(TOKEN_PATH, data=data)
        except httpx.HTTPError as e:
            raise SensorPlatformError(f"Netatmo token request failed: {e}") from e
        if response.is_error:
            raise SensorPlatformError(_error_message(response))
        try:
            tokens = response.json()
            access_token = tokens["access_token"]
            expires_in = float(tokens.get("expires_in", 10800))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SensorPlatformError(f"Malformed Netatmo token response: {e!r}") from e
        self._access_token = access_token
        self._refresh_token = tokens.get("refresh_token")
        self._expires_at = time.monotonic() + expires_in - TOKEN_EXPIRY_MARGIN

    async def _renew(self) -> None:
        if self._refresh_token:
            try:
                await self._request_token(
                    {
                        "grant_type": "refresh_token",
                        "refresh_token": self._refresh_token,
                        "client_id": self.identity.client_id,
                        "client_secret": self.identity.client_secret,
                    }
                )
                return
            except SensorPlatformError as e:
                logger.warning(f"Token refresh failed for demozone {self.zone_id}: {e}")
        await self.authenticate()

    async def _call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if self._access_token is None:
            raise SensorPlatformError(f"Netatmo session for demozone {self.zone_id} not authenticated")
        if time.monotonic() >= self._expires_at:
            await self._renew()

        response = await self._send(method, path, **kwargs)
        if response.status_code == 403 and _error_code(response) in TOKEN_ERROR_CODES:
            await self._renew()
            response = await self._send(method, path, **kwargs)

        if response.is_error:
            message = _error_message(response)
            self.state.update(SensorStatus.WARNING, message)
            raise SensorPlatformError(message)
        try:
            body = response.json().get("body", {})
        except (ValueError, AttributeError) as e:
            message = f"Malformed Netatmo response from {path}: {e!r}"
            self.state.update(SensorStatus.WARNING, message)
            raise SensorPlatformError(message) from e
        if self.state.status is SensorStatus.WARNING:
            self.state.update(SensorStatus.CONNECTED)
        return body

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            return await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            self.state.update(SensorStatus.WARNING, str(e))
            raise SensorPlatformError(f"Netatmo request failed: {e}") from e
