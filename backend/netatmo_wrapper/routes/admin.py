"""Admin API routes: /admin/<op>/<demozone?>/<param?>."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from netatmo_wrapper.config import NETATMO_RESET_ENABLED, STATUS_ENABLED
from netatmo_wrapper.exceptions import DevicePlatformError, InvalidParameter, ZoneNotFound
from netatmo_wrapper.runtime import Runtime, get_runtime
from netatmo_wrapper.schemas import IntervalRequest, SetTemperatureResult, ZoneStatusView
from netatmo_wrapper.services import ScheduleOutcome
from netatmo_wrapper.services._numbers import parse_positive

logger = logging.getLogger(__name__)

OP_START = "START"
OP_STOP = "STOP"
OP_SET = "SET"
OP_STATUS = "STATUS"
OP_INTERVAL = "INTERVAL"
OP_IOT_RESET = "IOTRESET"
OP_NETATMO_RESET = "NETATMORESET"

router = APIRouter(prefix="/admin", tags=["admin"])


def _unsupported() -> HTTPException:
    return HTTPException(status_code=400, detail="Operation not supported")


def _accepted(message: str) -> JSONResponse:
    """202: the requested state already holds, nothing changed."""
    return JSONResponse(status_code=202, content={"detail": message})


def _no_content() -> Response:
    return Response(status_code=204)


def _require_zone(demozone: str | None) -> str:
    if not demozone:
        raise HTTPException(status_code=400, detail="Demozone not specified")
    return demozone.upper()


@router.get("/{op}", response_model=list[ZoneStatusView], response_model_exclude_none=True)
@router.get("/{op}/{demozone}", response_model=list[ZoneStatusView], response_model_exclude_none=True)
async def admin_query(
    op: str,
    demozone: str | None = None,
    runtime: Runtime = Depends(get_runtime),
) -> list[ZoneStatusView]:
    """Report the polling, timer and Netatmo state of every demozone."""
    if op.upper() != OP_STATUS or not STATUS_ENABLED:
        raise _unsupported()
    return runtime.scheduler.status_snapshot()


@router.post("/{op}", response_model=None)
@router.post("/{op}/{demozone}", response_model=None)
@router.post("/{op}/{demozone}/{param}", response_model=None)
async def admin_command(
    op: str,
    request: Request,
    demozone: str | None = None,
    param: str | None = None,
    runtime: Runtime = Depends(get_runtime),
) -> Response | SetTemperatureResult:
    """Run an admin operation against one demozone or the whole wrapper."""
    op = op.upper()
    logger.debug(f"Received '{op}' operation for demozone {demozone or '<none>'}")

    if op == OP_START:
        zone_id = _require_zone(demozone)
        try:
            outcome = runtime.scheduler.start(zone_id, param)
        except ZoneNotFound:
            raise HTTPException(status_code=400, detail="Demozone not registered")
        except InvalidParameter as e:
            raise HTTPException(status_code=400, detail=str(e))
        if outcome is ScheduleOutcome.ALREADY_RUNNING:
            period = runtime.registry.lookup(zone_id).poll_period_seconds
            return _accepted(
                f"Timer for demozone {zone_id} is already started every {period} seconds"
            )
        return _no_content()

    if op == OP_STOP:
        zone_id = _require_zone(demozone)
        try:
            outcome = runtime.scheduler.stop(zone_id)
        except ZoneNotFound:
            raise HTTPException(status_code=400, detail="Demozone not registered")
        if outcome is ScheduleOutcome.ALREADY_STOPPED:
            return _accepted(f"Timer for demozone {zone_id} is already stopped")
        return _no_content()

    if op == OP_INTERVAL:
        zone_id = _require_zone(demozone)
        try:
            runtime.registry.lookup(zone_id)
        except ZoneNotFound:
            raise HTTPException(status_code=400, detail="Demozone not registered")
        try:
            body = IntervalRequest.model_validate(await request.json())
            outcome = runtime.scheduler.reconfigure(zone_id, body.interval)
        except (ValueError, ValidationError, InvalidParameter):
            raise HTTPException(status_code=400, detail="Invalid or missing payload")
        if outcome is ScheduleOutcome.NOT_RUNNING:
            return _accepted(f"Timer for demozone {zone_id} is not yet started")
        return _no_content()

    if op == OP_SET:
        zone_id = _require_zone(demozone)
        temperature = parse_positive(param)
        if temperature is None:
            raise HTTPException(status_code=400, detail="Missing or invalid 'temperature' parameter")
        try:
            zone = runtime.registry.lookup(zone_id)
        except ZoneNotFound:
            raise HTTPException(status_code=400, detail="Demozone not registered")
        if not zone.enabled:
            raise HTTPException(status_code=400, detail="Demozone not registered")
        if zone.iot_action is None:
            raise HTTPException(status_code=400, detail="Demozone has no IoT action configured")
        value = f"{zone.sensor_identity.device_id}/{temperature}"
        try:
            status = await runtime.action_client.invoke(zone.iot_action, value)
        except DevicePlatformError as e:
            logger.error(f"SET for demozone {zone_id} failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return SetTemperatureResult(result=status)

    if op == OP_IOT_RESET:
        try:
            await runtime.reset_devices()
        except DevicePlatformError as e:
            logger.error(f"IoT reset failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return _no_content()

    if op == OP_NETATMO_RESET and NETATMO_RESET_ENABLED:
        await runtime.reset_sensors()
        return _no_content()

    raise _unsupported()
