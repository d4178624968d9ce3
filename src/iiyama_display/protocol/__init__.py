"""Display protocol package - frame encoding, decoding, and input mapping.

Public API:
- Frame codec (encode_frame, decode_frame, calculate_checksum, Frame)
- Input source mapping (InputSource, input_to_type_code, type_code_to_input)
- Protocol exceptions
"""

from iiyama_display.protocol.exceptions import (
    ChecksumError,
    FrameLengthError,
    IiyamaError,
    UnexpectedStatusError,
    UnmappedEnumError,
)
from iiyama_display.protocol.frame import (
    Frame,
    calculate_checksum,
    clamp_device_id,
    decode_frame,
    encode_frame,
    encode_report,
)
from iiyama_display.protocol.input_map import (
    INPUT_LABELS,
    INPUT_TYPE_CODES,
    InputSource,
    input_to_type_code,
    parse_input,
    type_code_to_input,
)

__all__ = [
    # Codec
    "Frame",
    "calculate_checksum",
    "clamp_device_id",
    "decode_frame",
    "encode_frame",
    "encode_report",
    # Input mapping
    "INPUT_LABELS",
    "INPUT_TYPE_CODES",
    "InputSource",
    "input_to_type_code",
    "parse_input",
    "type_code_to_input",
    # Exceptions
    "ChecksumError",
    "FrameLengthError",
    "IiyamaError",
    "UnexpectedStatusError",
    "UnmappedEnumError",
]
