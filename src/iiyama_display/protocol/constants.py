"""Wire constants of the iiyama LAN/RS232 control protocol.

Request frame (controller → display):
    A6 | id | 00 | 00 | 00 | length | 01 | command | params... | checksum

Report frame (display → controller):
    21 | id | category | page | length | control | data... | checksum

The checksum is the XOR of every byte before it.
"""

from typing import Final

# Frame headers
HEADER_COMMAND: Final = 0xA6
HEADER_REPORT: Final = 0x21

# Fixed request fields
CATEGORY: Final = 0x00
PAGE: Final = 0x00
FUNCTION: Final = 0x00
CONTROL: Final = 0x01

REPORT_PREAMBLE_LENGTH: Final = 5  # header, id, category, page, length
COMMAND_PREAMBLE_LENGTH: Final = 6  # header, id, category, page, function, length
MIN_FRAME_LENGTH: Final = 7

MIN_DEVICE_ID: Final = 1
MAX_DEVICE_ID: Final = 255

# Set reply status codes (data[1])
STATUS_ACK: Final = 0x00
STATUS_NACK: Final = 0x03
STATUS_NAV: Final = 0x04
STATUS_CODES: Final = frozenset({STATUS_ACK, STATUS_NACK, STATUS_NAV})

# Commands
CMD_MISC_INFO_GET: Final = 0x0F
CMD_POWER_SET: Final = 0x18
CMD_POWER_GET: Final = 0x19
CMD_VOLUME_SET: Final = 0x44
CMD_VOLUME_GET: Final = 0x45
CMD_LABEL_GET: Final = 0xA2
CMD_INPUT_SET: Final = 0xAC
CMD_INPUT_GET: Final = 0xAD

# Misc info sub-commands
MISC_OPERATING_HOURS: Final = 0x02

# Label selectors
LABEL_FIRMWARE: Final = 0x00
LABEL_MODEL: Final = 0x01

# Power state bytes
POWER_OFF: Final = 0x01
POWER_ON: Final = 0x02

VOLUME_MIN: Final = 0
VOLUME_MAX: Final = 100
