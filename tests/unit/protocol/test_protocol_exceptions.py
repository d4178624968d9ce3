"""Unit tests for protocol exceptions."""

from __future__ import annotations

from iiyama_display.config import ConfigError
from iiyama_display.device.lock import LockContentionError
from iiyama_display.protocol.exceptions import (
    ChecksumError,
    FrameLengthError,
    IiyamaError,
    UnexpectedStatusError,
    UnmappedEnumError,
)
from iiyama_display.transport.exceptions import ConnectError, ReadTimeoutError, WriteError

PREVIEW_LENGTH = 16


class TestExceptionHierarchy:
    """Every failure can be caught through IiyamaError."""

    def test_all_exceptions_inherit_from_iiyama_error(self) -> None:
        for exc_type in (
            ChecksumError,
            ConfigError,
            ConnectError,
            FrameLengthError,
            LockContentionError,
            ReadTimeoutError,
            UnexpectedStatusError,
            UnmappedEnumError,
            WriteError,
        ):
            assert issubclass(exc_type, IiyamaError)


class TestIiyamaError:
    def test_str_is_last_error(self) -> None:
        error = IiyamaError("some_reason", "Something failed")
        assert error.reason == "some_reason"
        assert error.last_error == "Something failed"
        assert str(error) == "Something failed"


class TestFrameLengthError:
    def test_preview_is_truncated(self) -> None:
        data = bytes(range(40))
        error = FrameLengthError("length_mismatch", data, expected=12)
        assert error.actual == len(data)
        assert error.expected == 12
        assert len(error.data_preview) == PREVIEW_LENGTH

    def test_defaults(self) -> None:
        error = FrameLengthError("too_short")
        assert error.actual == 0
        assert error.expected == 0
        assert error.last_error == "Invalid response / checksum"


class TestChecksumError:
    def test_fields(self) -> None:
        error = ChecksumError(expected=0x3E, received=0x3F, data=b"\x21\x01")
        assert error.reason == "checksum_mismatch"
        assert error.expected == 0x3E
        assert error.received == 0x3F
        assert error.data_preview == b"\x21\x01"


class TestUnexpectedStatusError:
    def test_fields(self) -> None:
        error = UnexpectedStatusError("nack", "NACK for SET cmd 0x18", 0x18, 0x03)
        assert error.command == 0x18
        assert error.status == 0x03
        assert str(error) == "NACK for SET cmd 0x18"

    def test_status_defaults_to_none(self) -> None:
        assert UnexpectedStatusError("x", "y", 0x19).status is None
