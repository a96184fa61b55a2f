"""Per-zone polling lifecycle.

The scheduler owns, for every zone, at most one recurring poll task and at most
one auto-stop timer. All operations are plain synchronous methods: they run to
completion on the event loop without awaiting, so two operations on the same
zone can never observe each other's partial updates. Only the poll cycles
themselves perform I/O, and those run in their own tasks.
"""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from netatmo_wrapper.exceptions import InvalidParameter, ZoneNotFound
from netatmo_wrapper.models import AutoStopTimer, ScheduledPoll, Zone, ZoneStatus
from netatmo_wrapper.schemas import LoopStatus, SensorStatusView, TimerStatus, ZoneStatusView
from netatmo_wrapper.services._numbers import parse_positive
from netatmo_wrapper.services.registry import ZoneRegistry

logger = logging.getLogger(__name__)

PollCallback = Callable[[Zone], Awaitable[None]]

# Longest delay the event loop can schedule without overflowing its clock
MAX_DELAY_SECONDS = threading.TIMEOUT_MAX


class ScheduleOutcome(StrEnum):
    """Result of a scheduler operation that did not fail."""

    STARTED = "STARTED"
    ALREADY_RUNNING = "ALREADY_RUNNING"
    STOPPED = "STOPPED"
    ALREADY_STOPPED = "ALREADY_STOPPED"
    RECONFIGURED = "RECONFIGURED"
    NOT_RUNNING = "NOT_RUNNING"

    @property
    def changed(self) -> bool:
        """Whether the operation changed the zone's state."""
        return self in (ScheduleOutcome.STARTED, ScheduleOutcome.STOPPED, ScheduleOutcome.RECONFIGURED)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ZoneScheduler:
    """Starts, stops and reconfigures the polling of each zone."""

    def __init__(
        self,
        registry: ZoneRegistry,
        poll: PollCallback,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._registry = registry
        self._poll = poll
        self._clock = clock
        self._polls: dict[str, ScheduledPoll] = {}
        self._auto_stops: dict[str, AutoStopTimer] = {}
        # In-flight poll cycles, kept referenced until they finish
        self._cycles: set[asyncio.Task] = set()

    # --- Operations ---

    def start(self, zone_id: str, duration_minutes: Any) -> ScheduleOutcome:
        """Start polling a zone for ``duration_minutes``.

        Raises ZoneNotFound for unknown or disabled zones and InvalidParameter
        when the duration is missing, not numeric or not positive.
        """
        zone = self._registry.lookup(zone_id)
        if not zone.enabled:
            raise ZoneNotFound(zone.id)
        minutes = parse_positive(duration_minutes)
        if minutes is None or minutes * 60 > MAX_DELAY_SECONDS:
            raise InvalidParameter("Missing or invalid 'minutes' parameter")
        if zone.status is ZoneStatus.RUNNING:
            return ScheduleOutcome.ALREADY_RUNNING

        # Timer is armed before any zone state changes
        logger.info(f"Setting loop for demozone {zone.id} for {minutes} minutes")
        timer = AutoStopTimer(zone_id=zone.id, started_at=self._clock(), minutes=minutes)
        timer.handle = asyncio.get_running_loop().call_later(
            minutes * 60, self._auto_stop_fire, zone.id, timer
        )

        logger.info(f"Starting interval for demozone {zone.id} every {zone.poll_period_seconds}s")
        self._install_poll(zone, zone.poll_period_seconds)
        zone.status = ZoneStatus.RUNNING
        self._auto_stops[zone.id] = timer
        return ScheduleOutcome.STARTED

    def stop(self, zone_id: str) -> ScheduleOutcome:
        """Stop polling a zone and cancel its auto-stop timer."""
        zone = self._registry.lookup(zone_id)
        if zone.status is not ZoneStatus.RUNNING:
            return ScheduleOutcome.ALREADY_STOPPED
        logger.info(f"Stopping interval for demozone {zone.id}")
        self._halt(zone)
        return ScheduleOutcome.STOPPED

    def reconfigure(self, zone_id: str, period_seconds: Any) -> ScheduleOutcome:
        """Replace a running zone's poll task with one firing every ``period_seconds``.

        The auto-stop timer, if any, keeps its original deadline.
        """
        zone = self._registry.lookup(zone_id)
        period = parse_positive(period_seconds)
        if period is None or period > MAX_DELAY_SECONDS:
            raise InvalidParameter("Invalid or missing payload")
        if zone.status is not ZoneStatus.RUNNING:
            return ScheduleOutcome.NOT_RUNNING

        logger.info(f"Setting new interval for demozone {zone.id} to {period} seconds")
        previous = self._polls.pop(zone.id, None)
        if previous is not None:
            previous.cancel()
        else:
            logger.error(f"Demozone {zone.id} is running but has no poll task")
        self._install_poll(zone, period)
        zone.poll_period_seconds = period
        return ScheduleOutcome.RECONFIGURED

    def status_snapshot(self) -> list[ZoneStatusView]:
        """Project every zone's polling, timer and sensor state."""
        result = []
        for zone in self._registry.list_zones():
            loop = LoopStatus(status=zone.status)
            poll = self._polls.get(zone.id)
            if poll is not None:
                loop.interval = poll.period_seconds

            view = ZoneStatusView(demozone=zone.id, loop=loop)
            timer = self._auto_stops.get(zone.id)
            if timer is not None:
                view.timer = TimerStatus(started_at=timer.started_at, period=timer.minutes)
            if zone.sensor_state is not None:
                view.sensor = SensorStatusView(
                    status=zone.sensor_state.status,
                    message=zone.sensor_state.message,
                )
            result.append(view)
        return result

    def shutdown(self) -> None:
        """Cancel every poll task, auto-stop timer and in-flight poll cycle."""
        for zone in self._registry.list_zones():
            if zone.status is ZoneStatus.RUNNING:
                self._halt(zone)
        for cycle in list(self._cycles):
            cycle.cancel()
        logger.info("Zone scheduler shut down")

    # --- Introspection ---

    def poll_for(self, zone_id: str) -> ScheduledPoll | None:
        return self._polls.get(zone_id.upper())

    def auto_stop_for(self, zone_id: str) -> AutoStopTimer | None:
        return self._auto_stops.get(zone_id.upper())

    # --- Internals ---

    def _install_poll(self, zone: Zone, period: float) -> None:
        if zone.id in self._polls:
            # Never leave two live poll tasks for one zone
            self._polls.pop(zone.id).cancel()
        task = asyncio.create_task(self._run_poll(zone.id, period), name=f"poll-{zone.id}")
        self._polls[zone.id] = ScheduledPoll(zone_id=zone.id, period_seconds=period, task=task)

    def _halt(self, zone: Zone) -> None:
        poll = self._polls.pop(zone.id, None)
        if poll is not None:
            poll.cancel()
        else:
            logger.error(f"Demozone {zone.id} is running but has no poll task")
        timer = self._auto_stops.pop(zone.id, None)
        if timer is not None:
            logger.info(f"Stopping timer for demozone {zone.id}")
            timer.cancel()
        zone.status = ZoneStatus.STOPPED

    def _auto_stop_fire(self, zone_id: str, timer: AutoStopTimer) -> None:
        if self._auto_stops.get(zone_id) is not timer:
            logger.debug(f"Ignoring superseded auto-stop timer for demozone {zone_id}")
            return
        del self._auto_stops[zone_id]
        zone = self._registry.lookup(zone_id)
        if zone.status is ZoneStatus.RUNNING:
            logger.info(f"Timer ended for demozone {zone_id}")
            self._halt(zone)

    async def _run_poll(self, zone_id: str, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            current = self._polls.get(zone_id)
            if current is None or current.task is not asyncio.current_task():
                return
            zone = self._registry.lookup(zone_id)
            # A slow collaborator delays only this cycle, not the next firing
            cycle = asyncio.create_task(self._poll(zone), name=f"poll-cycle-{zone_id}")
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycle_done)

    def _cycle_done(self, cycle: asyncio.Task) -> None:
        self._cycles.discard(cycle)
        if cycle.cancelled():
            return
        error = cycle.exception()
        if error is not None:
            logger.error(f"Poll cycle {cycle.get_name()} failed: {error!r}")
