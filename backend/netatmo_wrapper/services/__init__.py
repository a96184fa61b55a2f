"""Service layer modules."""

from netatmo_wrapper.services.commands import CommandBridge
from netatmo_wrapper.services.registry import ZoneRegistry
from netatmo_wrapper.services.scheduler import ScheduleOutcome, ZoneScheduler
from netatmo_wrapper.services.telemetry import poll_once

__all__ = [
    "CommandBridge",
    "ScheduleOutcome",
    "ZoneRegistry",
    "ZoneScheduler",
    "poll_once",
]
