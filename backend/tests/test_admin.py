"""Tests for the admin API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import (
    FakeActionClient,
    FakeDevice,
    FakeSensorSession,
    FakeSetupClient,
    FakeVirtualDevice,
    build_zone,
)
from netatmo_wrapper.exceptions import DevicePlatformError
from netatmo_wrapper.main import app
from netatmo_wrapper.models import IotAction, SensorState, SensorStatus, ZoneStatus
from netatmo_wrapper.runtime import Runtime, get_runtime
from netatmo_wrapper.services import ZoneRegistry

ADMIN = "/ngw/admin"


@pytest.fixture
def devices():
    """Fake devices handed out by the runtime, keyed by zone id."""
    return {}


@pytest.fixture
async def runtime(tmp_path, devices):
    lobby = build_zone("LOBBY", device_id="dev123", period=30)
    lobby.iot_action = IotAction(
        app_id="app1", device_id="iotdev1", urn="urn:thermostat", action="SetSetPointTemp"
    )
    lobby.sensor_state = SensorState(SensorStatus.CONNECTED)
    registry = ZoneRegistry(
        [
            lobby,
            build_zone("SPA", device_id="dev456", period=30),
            build_zone("GARAGE", device_id="dev789", status=ZoneStatus.DISABLED),
        ]
    )
    for zone_id in ("LOBBY", "SPA"):
        (tmp_path / f"{zone_id}.conf").write_text("{}")

    def device_factory(zone, store_file):
        devices[zone.id] = FakeDevice(FakeVirtualDevice())
        return devices[zone.id]

    runtime = Runtime(
        registry=registry,
        setup_client=FakeSetupClient(),
        action_client=FakeActionClient(),
        device_factory=device_factory,
        sensor_factory=lambda zone, state: FakeSensorSession(state=state),
        store_dir=tmp_path,
    )
    yield runtime
    runtime.scheduler.shutdown()


@pytest.fixture
async def client(runtime):
    """Create test client bound to the fake runtime."""
    app.dependency_overrides[get_runtime] = lambda: runtime
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


# --- START ---


@pytest.mark.asyncio
async def test_start_zone(client: AsyncClient, runtime: Runtime):
    response = await client.post(f"{ADMIN}/START/lobby/5")

    assert response.status_code == 204
    assert runtime.registry.lookup("LOBBY").status is ZoneStatus.RUNNING
    assert runtime.scheduler.auto_stop_for("LOBBY").minutes == 5


@pytest.mark.asyncio
async def test_start_twice_is_accepted_without_change(client: AsyncClient, runtime: Runtime):
    await client.post(f"{ADMIN}/START/LOBBY/5")
    poll = runtime.scheduler.poll_for("LOBBY")

    response = await client.post(f"{ADMIN}/start/LOBBY/10")

    assert response.status_code == 202
    assert "already started" in response.json()["detail"]
    assert runtime.scheduler.poll_for("LOBBY") is poll
    assert runtime.scheduler.auto_stop_for("LOBBY").minutes == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/START",
        "/START/LOBBY",
        "/START/LOBBY/0",
        "/START/LOBBY/abc",
        "/START/LOBBY/1e308",
        "/START/ATRIUM/5",
        "/START/GARAGE/5",
    ],
)
async def test_start_bad_requests(client: AsyncClient, runtime: Runtime, path: str):
    response = await client.post(f"{ADMIN}{path}")

    assert response.status_code == 400
    assert all(z.status is not ZoneStatus.RUNNING for z in runtime.registry.list_zones())


# --- STOP ---


@pytest.mark.asyncio
async def test_stop_zone(client: AsyncClient, runtime: Runtime):
    await client.post(f"{ADMIN}/START/LOBBY/5")

    response = await client.post(f"{ADMIN}/STOP/LOBBY")

    assert response.status_code == 204
    assert runtime.registry.lookup("LOBBY").status is ZoneStatus.STOPPED
    assert runtime.scheduler.poll_for("LOBBY") is None
    assert runtime.scheduler.auto_stop_for("LOBBY") is None


@pytest.mark.asyncio
async def test_stop_already_stopped(client: AsyncClient):
    response = await client.post(f"{ADMIN}/STOP/LOBBY")

    assert response.status_code == 202
    assert response.json()["detail"] == "Timer for demozone LOBBY is already stopped"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/STOP", "/STOP/ATRIUM"])
async def test_stop_bad_requests(client: AsyncClient, path: str):
    response = await client.post(f"{ADMIN}{path}")
    assert response.status_code == 400


# --- INTERVAL ---


@pytest.mark.asyncio
async def test_interval_reconfigures_running_zone(client: AsyncClient, runtime: Runtime):
    await client.post(f"{ADMIN}/START/LOBBY/5")
    timer = runtime.scheduler.auto_stop_for("LOBBY")

    response = await client.post(f"{ADMIN}/INTERVAL/LOBBY", json={"interval": 10})

    assert response.status_code == 204
    assert runtime.scheduler.poll_for("LOBBY").period_seconds == 10
    assert runtime.scheduler.auto_stop_for("LOBBY") is timer


@pytest.mark.asyncio
async def test_interval_on_stopped_zone(client: AsyncClient, runtime: Runtime):
    response = await client.post(f"{ADMIN}/INTERVAL/LOBBY", json={"interval": 10})

    assert response.status_code == 202
    assert "not yet started" in response.json()["detail"]
    assert runtime.registry.lookup("LOBBY").poll_period_seconds == 30


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"json": {}},
        {"json": {"interval": "10"}},
        {"json": {"interval": 0}},
        {"json": {"interval": -5}},
        {"content": b"not json", "headers": {"content-type": "application/json"}},
    ],
)
async def test_interval_invalid_payload(client: AsyncClient, runtime: Runtime, kwargs):
    await client.post(f"{ADMIN}/START/LOBBY/5")

    response = await client.post(f"{ADMIN}/INTERVAL/LOBBY", **kwargs)

    assert response.status_code == 400
    assert runtime.scheduler.poll_for("LOBBY").period_seconds == 30


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/INTERVAL", "/INTERVAL/ATRIUM"])
async def test_interval_bad_zone(client: AsyncClient, path: str):
    response = await client.post(f"{ADMIN}{path}", json={"interval": 10})
    assert response.status_code == 400


# --- STATUS ---


@pytest.mark.asyncio
async def test_status_projection(client: AsyncClient):
    await client.post(f"{ADMIN}/START/LOBBY/5")

    response = await client.get(f"{ADMIN}/status")

    assert response.status_code == 200
    zones = {z["demozone"]: z for z in response.json()}
    assert zones["LOBBY"]["loop"] == {"status": "RUNNING", "interval": 30}
    assert zones["LOBBY"]["timer"]["period"] == 5
    assert "startedAt" in zones["LOBBY"]["timer"]
    assert zones["LOBBY"]["sensor"] == {"status": "CONNECTED"}
    assert zones["SPA"] == {"demozone": "SPA", "loop": {"status": "STOPPED"}}
    assert zones["GARAGE"]["loop"]["status"] == "DISABLED"


@pytest.mark.asyncio
async def test_status_disabled_by_flag(client: AsyncClient, monkeypatch):
    monkeypatch.setattr("netatmo_wrapper.routes.admin.STATUS_ENABLED", False)

    response = await client.get(f"{ADMIN}/STATUS")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_other_op_not_supported(client: AsyncClient):
    response = await client.get(f"{ADMIN}/START")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_op_not_supported(client: AsyncClient):
    response = await client.post(f"{ADMIN}/REBOOT/LOBBY")

    assert response.status_code == 400
    assert response.json()["detail"] == "Operation not supported"


# --- SET ---


@pytest.mark.asyncio
async def test_set_invokes_device_action(client: AsyncClient, runtime: Runtime):
    response = await client.post(f"{ADMIN}/SET/LOBBY/21")

    assert response.status_code == 200
    assert response.json() == {"result": "RECEIVED"}
    action, value = runtime.action_client.invocations[0]
    assert action.app_id == "app1"
    assert value == "dev123/21"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/SET", "/SET/LOBBY", "/SET/LOBBY/-2", "/SET/ATRIUM/21", "/SET/SPA/21"])
async def test_set_bad_requests(client: AsyncClient, runtime: Runtime, path: str):
    response = await client.post(f"{ADMIN}{path}")

    assert response.status_code == 400
    assert runtime.action_client.invocations == []


@pytest.mark.asyncio
async def test_set_platform_failure(client: AsyncClient, runtime: Runtime):
    runtime.action_client = FakeActionClient(error=DevicePlatformError("401 Unauthorized"))

    response = await client.post(f"{ADMIN}/SET/LOBBY/21")

    assert response.status_code == 500
    assert response.json()["detail"] == "401 Unauthorized"


# --- Resets ---


@pytest.mark.asyncio
async def test_iot_reset_reinitializes_devices(client: AsyncClient, runtime: Runtime, devices):
    response = await client.post(f"{ADMIN}/IOTRESET")

    assert response.status_code == 204
    assert sorted(devices) == ["LOBBY", "SPA"]
    assert all(device.initialized for device in devices.values())
    assert runtime.registry.lookup("LOBBY").device_session is devices["LOBBY"]
    assert runtime.registry.lookup("GARAGE").device_session is None


@pytest.mark.asyncio
async def test_iot_reset_failure_returns_500(client: AsyncClient, runtime: Runtime):
    runtime._device_factory = lambda zone, store_file: FakeDevice(
        error=DevicePlatformError("activation refused")
    )

    response = await client.post(f"{ADMIN}/IOTRESET")

    assert response.status_code == 500
    assert response.json()["detail"] == "activation refused"


@pytest.mark.asyncio
async def test_netatmo_reset_reconnects_sensors(client: AsyncClient, runtime: Runtime):
    response = await client.post(f"{ADMIN}/NETATMORESET")

    assert response.status_code == 204
    for zone_id in ("LOBBY", "SPA"):
        zone = runtime.registry.lookup(zone_id)
        assert zone.sensor_session is not None
        assert zone.sensor_state.status is SensorStatus.CONNECTED
    assert runtime.registry.lookup("GARAGE").sensor_session is None


@pytest.mark.asyncio
async def test_netatmo_reset_disabled_by_flag(client: AsyncClient, monkeypatch):
    monkeypatch.setattr("netatmo_wrapper.routes.admin.NETATMO_RESET_ENABLED", False)

    response = await client.post(f"{ADMIN}/NETATMORESET")

    assert response.status_code == 400
