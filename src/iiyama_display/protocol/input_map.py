"""Mapping between logical input sources and device input-source type codes.

The logical enumeration is stable and host-facing. Device type codes come from
the iiyama "Input Source Type" table. The mapping is total from logical value
to type code; unknown type codes are reported as unmapped and never aliased to
a default input.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType

from iiyama_display.protocol.exceptions import UnmappedEnumError


class InputSource(IntEnum):
    """Logical input sources exposed to the host."""

    HDMI1 = 0
    HDMI2 = 1
    USB_C = 2  # DP Alt mode / DP1
    BROWSER = 3
    CMS = 4
    FILE_MANAGER = 5  # internal storage
    MEDIA_PLAYER = 6
    PDF_PLAYER = 7
    CUSTOM = 8


INPUT_TYPE_CODES = MappingProxyType(
    {
        InputSource.HDMI1: 0x0D,
        InputSource.HDMI2: 0x06,
        InputSource.USB_C: 0x0A,
        InputSource.BROWSER: 0x10,
        InputSource.CMS: 0x11,
        InputSource.FILE_MANAGER: 0x13,
        InputSource.MEDIA_PLAYER: 0x16,
        InputSource.PDF_PLAYER: 0x17,
        InputSource.CUSTOM: 0x18,
    },
)

_TYPE_CODE_INPUTS = MappingProxyType({code: source for source, code in INPUT_TYPE_CODES.items()})

INPUT_LABELS = MappingProxyType(
    {
        InputSource.HDMI1: "HDMI1",
        InputSource.HDMI2: "HDMI2",
        InputSource.USB_C: "USB-C",
        InputSource.BROWSER: "Browser",
        InputSource.CMS: "CMS",
        InputSource.FILE_MANAGER: "File Manager",
        InputSource.MEDIA_PLAYER: "Media Player",
        InputSource.PDF_PLAYER: "PDF Player",
        InputSource.CUSTOM: "Custom",
    },
)


def input_to_type_code(value: int) -> int:
    """Translate a logical input value to the device type code.

    Raises:
        UnmappedEnumError: ``value`` is not one of the logical inputs

    """
    try:
        source = InputSource(value)
    except ValueError as e:
        raise UnmappedEnumError("unknown_input", f"Unknown input enum: {value}", value) from e
    return INPUT_TYPE_CODES[source]


def type_code_to_input(type_code: int) -> InputSource:
    """Translate a device type code to the logical input.

    Raises:
        UnmappedEnumError: the code is not modelled

    """
    source = _TYPE_CODE_INPUTS.get(type_code)
    if source is None:
        raise UnmappedEnumError(
            "unknown_type_code",
            f"Unknown input source type code: 0x{type_code:02X}",
            type_code,
        )
    return source


def parse_input(text: str) -> InputSource:
    """Parse an input given as a number or label ("HDMI1", "usb-c", "Media Player").

    Raises:
        UnmappedEnumError: text names no known input

    """
    candidate = text.strip()
    if candidate.isdigit():
        value = int(candidate)
        input_to_type_code(value)
        return InputSource(value)

    wanted = candidate.casefold().replace("-", "").replace("_", "").replace(" ", "")
    for source, label in INPUT_LABELS.items():
        if label.casefold().replace("-", "").replace(" ", "") == wanted:
            return source
    raise UnmappedEnumError("unknown_input", f"Unknown input enum: {candidate}", -1)
