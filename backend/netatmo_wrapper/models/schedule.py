"""Timer records owned by the zone scheduler."""

import asyncio
from dataclasses import dataclass
from datetime import datetime


@dataclass
class ScheduledPoll:
    """Recurring poll task of a RUNNING zone and the period it was started with."""

    zone_id: str
    period_seconds: float
    task: asyncio.Task

    def cancel(self) -> None:
        self.task.cancel()


@dataclass
class AutoStopTimer:
    """One-shot deadline that stops a zone's polling."""

    zone_id: str
    started_at: datetime
    minutes: float
    handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
