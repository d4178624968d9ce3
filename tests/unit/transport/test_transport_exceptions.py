"""Unit tests for transport layer exceptions."""

from __future__ import annotations

from iiyama_display.transport.exceptions import ConnectError, ReadTimeoutError, WriteError


class TestConnectError:
    def test_message_includes_reason(self) -> None:
        error = ConnectError("Connection refused (111)", "192.0.2.10", 5000)
        assert error.reason == "Connection refused (111)"
        assert error.host == "192.0.2.10"
        assert error.port == 5000
        assert error.last_error == "Connect failed: Connection refused (111)"


class TestWriteError:
    def test_last_error_is_fixed(self) -> None:
        error = WriteError("timeout")
        assert error.reason == "timeout"
        assert error.last_error == "Write failed"


class TestReadTimeoutError:
    def test_header_stage(self) -> None:
        error = ReadTimeoutError("header", 2)
        assert error.stage == "header"
        assert error.received == 2
        assert error.reason == "header_timeout"
        assert error.last_error == "Read header failed"

    def test_payload_stage(self) -> None:
        error = ReadTimeoutError("payload")
        assert error.received == 0
        assert error.last_error == "Read payload failed"
