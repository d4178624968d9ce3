"""Device package - command layer, reconciliation state and poll control."""

from iiyama_display.device.commands import DisplayCommands, clamp_volume
from iiyama_display.device.controller import DisplayController, tcp_transport_factory
from iiyama_display.device.host import VALUE_IDENTS, DisplayHost
from iiyama_display.device.lock import DeviceLock, LockContentionError
from iiyama_display.device.scheduler import PollScheduler
from iiyama_display.device.state import DeviceState, DisplayedState, PendingIntent

__all__ = [
    "VALUE_IDENTS",
    "DeviceLock",
    "DeviceState",
    "DisplayCommands",
    "DisplayController",
    "DisplayHost",
    "DisplayedState",
    "LockContentionError",
    "PendingIntent",
    "PollScheduler",
    "clamp_volume",
    "tcp_transport_factory",
]
