"""HTTP clients for the external collaborators."""

from netatmo_wrapper.clients.iot import IotActionClient, IotDevice, VirtualDevice
from netatmo_wrapper.clients.netatmo import NetatmoSession
from netatmo_wrapper.clients.setup import SetupClient

__all__ = [
    "IotActionClient",
    "IotDevice",
    "NetatmoSession",
    "SetupClient",
    "VirtualDevice",
]
