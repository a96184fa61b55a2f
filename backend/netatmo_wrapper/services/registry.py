"""Canonical list of demozones."""

import logging
from collections.abc import Iterable

from netatmo_wrapper.exceptions import ZoneNotFound
from netatmo_wrapper.models import Zone, ZoneStatus

logger = logging.getLogger(__name__)


class ZoneRegistry:
    """Holds every demozone known to the process, keyed by upper-cased id."""

    def __init__(self, zones: Iterable[Zone] = ()):
        self._zones: dict[str, Zone] = {}
        for zone in zones:
            self.add(zone)

    def __len__(self) -> int:
        return len(self._zones)

    def add(self, zone: Zone) -> None:
        if zone.id in self._zones:
            raise ValueError(f"Duplicate demozone {zone.id}")
        self._zones[zone.id] = zone

    def lookup(self, zone_id: str) -> Zone:
        """Return the zone with this id, disabled zones included."""
        zone = self._zones.get(zone_id.upper())
        if zone is None:
            raise ZoneNotFound(zone_id.upper())
        return zone

    def list_zones(self) -> list[Zone]:
        """Snapshot of all zones in registration order."""
        return list(self._zones.values())

    def enabled(self) -> list[Zone]:
        return [zone for zone in self._zones.values() if zone.enabled]

    def find_by_device_id(self, device_id: str) -> list[Zone]:
        """Enabled zones whose Netatmo device id matches."""
        return [z for z in self.enabled() if z.sensor_identity.device_id == device_id]

    def mark_disabled(self, zone_id: str) -> None:
        """Exclude a zone from scheduling for the rest of the process lifetime."""
        zone = self.lookup(zone_id)
        if zone.status is ZoneStatus.RUNNING:
            raise ValueError(f"Cannot disable running demozone {zone.id}")
        zone.status = ZoneStatus.DISABLED
        logger.info(f"Demozone {zone.id} disabled")
