"""Interface between the display controller and the application hosting it.

The host owns configuration, renders values, and runs the poll timer. The
controller depends only on the three capabilities below.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol

if TYPE_CHECKING:
    from iiyama_display.config import DisplayConfig

# Value idents reported to the host
IDENT_POWER: Final = "Power"
IDENT_INPUT: Final = "Input"
IDENT_VOLUME: Final = "Volume"
IDENT_OPERATING_HOURS: Final = "OperatingHours"
IDENT_MODEL_NAME: Final = "ModelName"
IDENT_FIRMWARE: Final = "FirmwareVersion"
IDENT_ONLINE: Final = "Online"
IDENT_LAST_ERROR: Final = "LastError"

VALUE_IDENTS: Final = (
    IDENT_POWER,
    IDENT_INPUT,
    IDENT_VOLUME,
    IDENT_OPERATING_HOURS,
    IDENT_MODEL_NAME,
    IDENT_FIRMWARE,
    IDENT_ONLINE,
    IDENT_LAST_ERROR,
)


class DisplayHost(Protocol):
    """Capabilities the controller needs from its host."""

    def read_config(self) -> DisplayConfig:
        """Return the current configuration (read on every cycle)."""
        ...

    def report_value(self, ident: str, value: object) -> None:
        """Publish a changed value (called only when the value changes)."""
        ...

    def schedule_next_poll(self, interval_ms: int) -> None:
        """Arm the poll timer; 0 disables it."""
        ...
