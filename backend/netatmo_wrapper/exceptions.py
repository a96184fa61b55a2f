"""Exceptions raised by the wrapper."""


class WrapperError(Exception):
    """Base class for wrapper errors."""


class ZoneNotFound(WrapperError):
    """No registered demozone with the given id."""

    def __init__(self, zone_id: str):
        super().__init__(f"Demozone {zone_id} not registered")
        self.zone_id = zone_id


class InvalidParameter(WrapperError):
    """A scheduler operation received a missing or out-of-range argument."""


class SetupError(WrapperError):
    """The demozone setup could not be loaded. Fatal at startup."""


class DevicePlatformError(WrapperError):
    """A call to the IoT device platform failed."""


class SensorPlatformError(WrapperError):
    """A call to the Netatmo API failed."""
