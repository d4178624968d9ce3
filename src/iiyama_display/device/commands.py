"""Typed get/set operations on top of the frame codec and transport.

Each public coroutine performs exactly one transaction. Failures raise an
:class:`~iiyama_display.protocol.exceptions.IiyamaError` subclass; the
controller turns them into the display's last-error text.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Protocol

from iiyama_display.logging_abstraction import get_logger
from iiyama_display.metrics import record_decode_error, record_transaction, record_transaction_latency
from iiyama_display.protocol.constants import (
    CMD_INPUT_GET,
    CMD_INPUT_SET,
    CMD_LABEL_GET,
    CMD_MISC_INFO_GET,
    CMD_POWER_GET,
    CMD_POWER_SET,
    CMD_VOLUME_GET,
    CMD_VOLUME_SET,
    HEADER_REPORT,
    LABEL_FIRMWARE,
    LABEL_MODEL,
    MISC_OPERATING_HOURS,
    POWER_OFF,
    POWER_ON,
    STATUS_ACK,
    STATUS_CODES,
    STATUS_NACK,
    STATUS_NAV,
    VOLUME_MAX,
    VOLUME_MIN,
)
from iiyama_display.protocol.exceptions import (
    ChecksumError,
    FrameLengthError,
    IiyamaError,
    UnexpectedStatusError,
)
from iiyama_display.protocol.frame import Frame, decode_frame, encode_frame
from iiyama_display.protocol.input_map import InputSource, input_to_type_code, type_code_to_input

logger = get_logger(__name__)

_STATUS_NAMES = {STATUS_NACK: "NACK", STATUS_NAV: "NAV"}


class Transport(Protocol):
    """Anything that can carry one request frame and return one response."""

    async def transact(self, request: bytes) -> bytes: ...


def clamp_volume(value: int) -> int:
    """Clamp a requested volume into 0..100."""
    return max(VOLUME_MIN, min(VOLUME_MAX, int(value)))


class DisplayCommands:
    """Command layer for one display."""

    def __init__(self, transport: Transport, monitor_id: int, device_label: str = ""):
        self.transport = transport
        self.monitor_id = monitor_id
        self.device_label = device_label or f"#{monitor_id}"

    async def _exchange(self, command: int, extra: Iterable[int]) -> Frame:
        request = encode_frame(self.monitor_id, command, extra)
        start_time = time.perf_counter()
        try:
            response = await self.transport.transact(request)
            frame = decode_frame(response)
        except (FrameLengthError, ChecksumError) as e:
            record_decode_error(self.device_label, e.reason)
            record_transaction(self.device_label, command, "decode_error")
            raise
        except IiyamaError as e:
            record_transaction(self.device_label, command, e.reason)
            raise
        finally:
            record_transaction_latency(self.device_label, time.perf_counter() - start_time)

        if frame.header != HEADER_REPORT:
            record_transaction(self.device_label, command, "bad_header")
            raise UnexpectedStatusError(
                "unexpected_header",
                f"Unexpected response header 0x{frame.header:02X} for cmd 0x{command:02X}",
                command,
            )
        return frame

    async def get_command(self, command: int, sub_params: Iterable[int] = ()) -> Frame:
        """Send a Get request and return the report frame.

        A reply whose first data byte does not echo ``command`` is still
        accepted unless its second byte looks like an ACK/NACK/NAV status.

        Raises:
            UnexpectedStatusError: wrong header, or a status reply instead of a report
        """
        frame = await self._exchange(command, sub_params)
        status = frame.data_byte(1)
        if frame.command != command and status in STATUS_CODES:
            record_transaction(self.device_label, command, "status_reply")
            raise UnexpectedStatusError(
                "status_reply_to_get",
                f"Unexpected ACK/NACK/NAV for GET cmd 0x{command:02X}",
                command,
                status,
            )
        if frame.command != command:
            logger.debug(
                "Accepting GET reply without command echo",
                extra={"device": self.device_label, "command": f"0x{command:02X}", "data": frame.data.hex(" ")},
            )
        record_transaction(self.device_label, command, "ok")
        return frame

    async def set_command(self, command: int, params: Iterable[int]) -> bool:
        """Send a Set request; True when the display acknowledged it.

        Raises:
            UnexpectedStatusError: NACK, NAV or any other status
        """
        frame = await self._exchange(command, params)
        status = frame.data_byte(1)
        if status == STATUS_ACK:
            record_transaction(self.device_label, command, "ack")
            return True

        if status in _STATUS_NAMES:
            name = _STATUS_NAMES[status]
            record_transaction(self.device_label, command, name.lower())
            raise UnexpectedStatusError(
                name.lower(),
                f"{name} for SET cmd 0x{command:02X}",
                command,
                status,
            )

        record_transaction(self.device_label, command, "unexpected_status")
        if status is None:
            raise UnexpectedStatusError("missing_status", f"Missing response code for SET cmd 0x{command:02X}", command)
        raise UnexpectedStatusError(
            "unexpected_status",
            f"Unexpected response code for SET cmd 0x{command:02X}: 0x{status:02X}",
            command,
            status,
        )

    # Getters

    async def get_power(self) -> bool:
        """True when the display reports power on."""
        frame = await self.get_command(CMD_POWER_GET)
        state = frame.data_byte(1)
        if state == POWER_ON:
            return True
        if state == POWER_OFF:
            return False
        raise UnexpectedStatusError("invalid_power_state", "No response (Power)", CMD_POWER_GET, state)

    async def get_volume(self) -> int:
        frame = await self.get_command(CMD_VOLUME_GET)
        volume = frame.data_byte(1)
        if volume is None:
            raise UnexpectedStatusError("missing_data", "No response (Volume)", CMD_VOLUME_GET)
        return volume

    async def get_input(self) -> InputSource:
        """Current input source; unknown type codes raise UnmappedEnumError."""
        frame = await self.get_command(CMD_INPUT_GET)
        type_code = frame.data_byte(1)
        if type_code is None:
            raise UnexpectedStatusError("missing_data", "No response (Input)", CMD_INPUT_GET)
        return type_code_to_input(type_code)

    async def get_operating_hours(self) -> int:
        """Operating hours, big-endian in data[1..2]."""
        frame = await self.get_command(CMD_MISC_INFO_GET, (MISC_OPERATING_HOURS,))
        msb, lsb = frame.data_byte(1), frame.data_byte(2)
        if msb is None or lsb is None:
            raise UnexpectedStatusError("missing_data", "No response (OperatingHours)", CMD_MISC_INFO_GET)
        return (msb << 8) + lsb

    async def get_label(self, selector: int) -> str:
        """Firmware (0) or model (1) label; other selectors read the firmware label."""
        if selector not in (LABEL_FIRMWARE, LABEL_MODEL):
            selector = LABEL_FIRMWARE
        frame = await self.get_command(CMD_LABEL_GET, (selector,))
        return frame.data[1:].decode("ascii", errors="replace").strip(" \t\r\n\0\x0b")

    # Setters

    async def set_power(self, on: bool) -> bool:
        return await self.set_command(CMD_POWER_SET, (POWER_ON if on else POWER_OFF,))

    async def set_volume(self, value: int) -> bool:
        """Set volume, clamped to 0..100."""
        return await self.set_command(CMD_VOLUME_SET, (clamp_volume(value),))

    async def set_input(self, value: int) -> bool:
        """Switch to a logical input.

        Raises:
            UnmappedEnumError: ``value`` is not a logical input (nothing is sent)
        """
        type_code = input_to_type_code(value)
        return await self.set_command(CMD_INPUT_SET, (type_code, 0x00, 0x00, 0x00))
