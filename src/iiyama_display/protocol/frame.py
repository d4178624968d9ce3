"""Frame encoder/decoder for the iiyama control protocol.

Command frames are built with :func:`encode_frame`; frames read from the wire
are validated and split with :func:`decode_frame`. Decoding never attempts
partial recovery: any structural violation raises.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce
from operator import xor

from iiyama_display.protocol.constants import (
    CATEGORY,
    COMMAND_PREAMBLE_LENGTH,
    CONTROL,
    FUNCTION,
    HEADER_COMMAND,
    HEADER_REPORT,
    MAX_DEVICE_ID,
    MIN_DEVICE_ID,
    MIN_FRAME_LENGTH,
    PAGE,
    REPORT_PREAMBLE_LENGTH,
)
from iiyama_display.protocol.exceptions import ChecksumError, FrameLengthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Decoded protocol frame.

    Attributes:
        header: 0xA6 for commands, 0x21 for reports
        device_id: Monitor ID (1..255)
        category: Category byte (always 0 in practice)
        page: Page byte (always 0 in practice)
        function: Function byte (command frames only, 0 for reports)
        body_length: Length byte as found on the wire
        control: Data control byte
        data: Data bytes; data[0] is the command (or its echo in reports)
        checksum: Trailing XOR checksum byte
        raw: Complete frame bytes

    """

    header: int
    device_id: int
    category: int
    page: int
    function: int
    body_length: int
    control: int
    data: bytes
    checksum: int
    raw: bytes

    @property
    def command(self) -> int | None:
        """First data byte (the command or its echo), None if data is empty."""
        return self.data[0] if self.data else None

    def data_byte(self, index: int) -> int | None:
        """Return ``data[index]`` or None when the frame is too short."""
        if 0 <= index < len(self.data):
            return self.data[index]
        return None


def calculate_checksum(data: bytes | bytearray | Iterable[int]) -> int:
    """XOR of every byte in ``data``.

    Example:
        >>> calculate_checksum(bytes([0xA6, 0x01, 0x00, 0x00, 0x00, 0x04, 0x01, 0x19]))
        187

    """
    return reduce(xor, (b & 0xFF for b in data), 0x00)


def clamp_device_id(device_id: int) -> int:
    """Clamp a monitor ID into the addressable range 1..255."""
    return max(MIN_DEVICE_ID, min(MAX_DEVICE_ID, int(device_id)))


def encode_frame(device_id: int, command: int, extra: Iterable[int] = ()) -> bytes:
    """Build a command frame.

    Layout: ``A6 id 00 00 00 length 01 command extra... checksum`` where
    ``length = 3 + 1 + len(extra)``.

    Args:
        device_id: Monitor ID, clamped to 1..255
        command: Command byte
        extra: Parameter bytes following the command

    Returns:
        Complete frame including checksum

    Example:
        >>> encode_frame(1, 0x19).hex(" ")
        'a6 01 00 00 00 04 01 19 bb'

    """
    data = [command & 0xFF, *(b & 0xFF for b in extra)]
    length = len(data) + 3

    frame = bytearray(
        [
            HEADER_COMMAND,
            clamp_device_id(device_id),
            CATEGORY,
            PAGE,
            FUNCTION,
            length,
            CONTROL,
        ],
    )
    frame.extend(data)
    frame.append(calculate_checksum(frame))

    logger.debug(
        "Encoded frame: cmd=0x%02X, length=%d, bytes=%s",
        command,
        length,
        frame.hex(" "),
    )
    return bytes(frame)


def decode_frame(data: bytes) -> Frame:
    """Decode and validate a complete frame.

    Report frames (any header other than 0xA6) use the 5-byte preamble
    ``header id category page length`` and carry ``length - 2`` data bytes.
    Command frames (0xA6) have the function byte before the length and carry
    ``length - 3`` data bytes. In both cases the total size is ``5 + length``.

    Raises:
        FrameLengthError: Frame too short or size does not match length byte
        ChecksumError: XOR checksum mismatch

    """
    if len(data) < MIN_FRAME_LENGTH:
        raise FrameLengthError("too_short", data)

    header = data[0]
    if header == HEADER_COMMAND:
        function = data[4]
        body_length = data[5]
        preamble = COMMAND_PREAMBLE_LENGTH
    else:
        function = 0
        body_length = data[4]
        preamble = REPORT_PREAMBLE_LENGTH

    expected_total = REPORT_PREAMBLE_LENGTH + body_length
    if len(data) != expected_total:
        raise FrameLengthError("length_mismatch", data, expected=expected_total)
    # control + checksum must fit after the preamble
    if expected_total < preamble + 2:
        raise FrameLengthError("body_too_short", data, expected=expected_total)

    expected_checksum = calculate_checksum(data[:-1])
    received_checksum = data[-1]
    if expected_checksum != received_checksum:
        raise ChecksumError(expected_checksum, received_checksum, data)

    frame = Frame(
        header=header,
        device_id=data[1],
        category=data[2],
        page=data[3],
        function=function,
        body_length=body_length,
        control=data[preamble],
        data=bytes(data[preamble + 1 : -1]),
        checksum=received_checksum,
        raw=bytes(data),
    )

    logger.debug(
        "Decoded frame: header=0x%02X, id=%d, data=%s",
        frame.header,
        frame.device_id,
        frame.data.hex(" "),
    )
    return frame


def encode_report(device_id: int, data: Iterable[int], category: int = CATEGORY, page: int = PAGE) -> bytes:
    """Build a report frame as a display would send it.

    Layout: ``21 id category page length 01 data... checksum`` where
    ``length = len(data) + 2``.

    Example:
        >>> encode_report(1, [0x19, 0x02]).hex(" ")
        '21 01 00 00 04 01 19 02 3e'

    """
    payload = [b & 0xFF for b in data]
    frame = bytearray(
        [
            HEADER_REPORT,
            clamp_device_id(device_id),
            category & 0xFF,
            page & 0xFF,
            len(payload) + 2,
            CONTROL,
        ],
    )
    frame.extend(payload)
    frame.append(calculate_checksum(frame))
    return bytes(frame)
