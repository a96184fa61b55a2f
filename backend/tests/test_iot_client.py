"""Tests for the IoT device platform clients."""

import json

import httpx
import pytest

from netatmo_wrapper.clients import IotActionClient, IotDevice
from netatmo_wrapper.exceptions import DevicePlatformError
from netatmo_wrapper.models import IotAction

URN = "urn:com:oracle:iot:device:timg:vfsmarthospitality:thermostat"
MODEL = {
    "urn": URN,
    "attributes": [
        {"name": "deviceId"},
        {"name": "moduleMac"},
        {"name": "moduleName"},
        {"name": "setpointTemp"},
        {"name": "temperature"},
    ],
    "actions": [{"name": "SetSetPointTemp"}],
}


class IotStub:
    """Minimal stand-in for the device platform REST API."""

    def __init__(self):
        self.activations = 0
        self.messages: list[list[dict]] = []
        self.pending_requests: list[dict] = []
        self.fail_model = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/iot/api/v2/oauth2/token":
            return httpx.Response(200, json={"access_token": "device-token"})
        if path == "/iot/api/v2/activation/direct":
            self.activations += 1
            return httpx.Response(200, json={"state": "ACTIVATED"})
        if path.startswith("/iot/api/v2/deviceModels/"):
            if self.fail_model:
                return httpx.Response(404)
            return httpx.Response(200, json=MODEL)
        if path == "/iot/api/v2/messages":
            self.messages.append(json.loads(request.content))
            pending, self.pending_requests = self.pending_requests, []
            return httpx.Response(202, json=pending)
        return httpx.Response(404)


@pytest.fixture
def stub():
    return IotStub()


@pytest.fixture
async def http(stub):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(stub), base_url="https://iot.example.com"
    ) as client:
        yield client


@pytest.fixture
def store_file(tmp_path):
    path = tmp_path / "LOBBY.conf"
    path.write_text(json.dumps({"endpoint_id": "EP-1", "shared_secret": "s3cret"}))
    return path


@pytest.mark.asyncio
async def test_initialize_activates_and_creates_virtual_device(http, stub, store_file):
    device = IotDevice("LOBBY", store_file, [URN], http)

    await device.initialize()

    assert stub.activations == 1
    assert device.activated
    assert json.loads(store_file.read_text())["activated"] is True
    assert device.virtual_device(URN) is not None


@pytest.mark.asyncio
async def test_initialize_skips_activation_when_already_active(http, stub, store_file):
    store_file.write_text(
        json.dumps({"endpoint_id": "EP-1", "shared_secret": "s3cret", "activated": True})
    )

    await IotDevice("LOBBY", store_file, [URN], http).initialize()

    assert stub.activations == 0


@pytest.mark.asyncio
async def test_initialize_with_bad_credential_file(http, tmp_path):
    path = tmp_path / "LOBBY.conf"
    path.write_text("not json")

    with pytest.raises(DevicePlatformError, match="Invalid device credential file"):
        await IotDevice("LOBBY", path, [URN], http).initialize()


@pytest.mark.asyncio
async def test_initialize_model_failure(http, stub, store_file):
    stub.fail_model = True

    with pytest.raises(DevicePlatformError, match="model"):
        await IotDevice("LOBBY", store_file, [URN], http).initialize()


@pytest.mark.asyncio
async def test_update_sends_data_message(http, stub, store_file):
    device = IotDevice("LOBBY", store_file, [URN], http)
    await device.initialize()

    await device.virtual_device(URN).update({"deviceId": "d1", "temperature": 21.5, "bogus": 1})

    message = stub.messages[0][0]
    assert message["type"] == "DATA"
    assert message["source"] == "EP-1"
    assert message["payload"]["format"] == f"{URN}:attributes"
    assert message["payload"]["data"] == {"deviceId": "d1", "temperature": 21.5}


@pytest.mark.asyncio
async def test_pending_action_request_reaches_handler(http, stub, store_file):
    device = IotDevice("LOBBY", store_file, [URN], http)
    await device.initialize()
    received = []

    async def handler(value):
        received.append(value)

    virtual_device = device.virtual_device(URN)
    virtual_device.on_execute["SetSetPointTemp"] = handler
    stub.pending_requests = [
        {
            "type": "REQUEST",
            "payload": {
                "url": f"deviceModels/{URN}/actions/SetSetPointTemp",
                "body": json.dumps({"value": "dev123/18"}),
            },
        }
    ]

    await virtual_device.update({"temperature": 20})

    assert received == ["dev123/18"]


@pytest.mark.asyncio
async def test_update_after_close_fails(http, store_file):
    device = IotDevice("LOBBY", store_file, [URN], http)
    await device.initialize()
    virtual_device = device.virtual_device(URN)

    device.close()

    assert device.virtual_device(URN) is None
    with pytest.raises(DevicePlatformError):
        await virtual_device.update({"temperature": 20})


@pytest.mark.asyncio
async def test_action_client_invokes_action():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"status": "RECEIVED"})

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://iot.example.com"
    ) as http:
        status = await IotActionClient(http).invoke(
            IotAction(app_id="app1", device_id="iotdev1", urn=URN, action="SetSetPointTemp"),
            "dev123/21",
        )

    assert status == "RECEIVED"
    assert seen == [
        (
            f"/iot/api/v2/apps/app1/devices/iotdev1/deviceModels/{URN}/actions/SetSetPointTemp",
            {"value": "dev123/21"},
        )
    ]


@pytest.mark.asyncio
async def test_action_client_failure():
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(401)),
        base_url="https://iot.example.com",
    ) as http:
        with pytest.raises(DevicePlatformError):
            await IotActionClient(http).invoke(
                IotAction(app_id="a", device_id="d", urn=URN, action="SetSetPointTemp"), "x/20"
            )
