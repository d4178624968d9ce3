"""Exception types for display protocol errors.

Errors raise exceptions instead of returning sentinel values. Every exception
carries a machine-friendly ``reason`` and a ``last_error`` text that the
controller surfaces to the host as the display's last error.
"""

from __future__ import annotations


class IiyamaError(Exception):
    """Base exception for all display communication errors.

    Attributes:
        reason: Specific failure reason (e.g., "checksum_mismatch")
        last_error: Human-readable text reported to the host

    """

    def __init__(self, reason: str, last_error: str):
        self.reason = reason
        self.last_error = last_error
        super().__init__(last_error)


class FrameLengthError(IiyamaError):
    """Frame length does not match its declared body length.

    Attributes:
        expected: Total length derived from the length byte (0 if not derivable)
        actual: Number of bytes received
        data_preview: First 16 bytes of the offending frame

    """

    def __init__(self, reason: str, data: bytes = b"", expected: int = 0):
        self.expected = expected
        self.actual = len(data)
        self.data_preview = data[:16]
        super().__init__(reason, "Invalid response / checksum")


class ChecksumError(IiyamaError):
    """XOR checksum of a frame does not match its trailing checksum byte."""

    def __init__(self, expected: int, received: int, data: bytes = b""):
        self.expected = expected
        self.received = received
        self.data_preview = data[:16]
        super().__init__("checksum_mismatch", "Invalid response / checksum")


class UnexpectedStatusError(IiyamaError):
    """Device answered with an unexpected header, status code or echo.

    Attributes:
        command: Command byte the request was sent with
        status: Status byte found in the reply (None when not applicable)

    """

    def __init__(self, reason: str, last_error: str, command: int, status: int | None = None):
        self.command = command
        self.status = status
        super().__init__(reason, last_error)


class UnmappedEnumError(IiyamaError):
    """Logical input value or device input code has no mapping.

    Attributes:
        value: The unmapped logical value or device code

    """

    def __init__(self, reason: str, last_error: str, value: int):
        self.value = value
        super().__init__(reason, last_error)
