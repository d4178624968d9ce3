"""Unit tests for TCPTransport.

Tests cover:
- One connection per transaction (connect, write, read, close)
- Connect, write and read failures mapped to transport exceptions
- Early end-of-stream returning the partial body
- Timeout floor
"""

from __future__ import annotations

import asyncio
import errno
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from iiyama_display.transport import MIN_TIMEOUT_SECONDS, TCPTransport
from iiyama_display.transport.exceptions import ConnectError, ReadTimeoutError, WriteError
from tests.fixtures.frames import GET_POWER_REQUEST, POWER_ON_REPORT
from tests.helpers.expectations import expect_async_exception

HEADER = POWER_ON_REPORT.raw[:5]
BODY = POWER_ON_REPORT.raw[5:]


def make_streams(header: bytes = HEADER, chunks: list[bytes] | None = None):
    """Build a mocked reader/writer pair answering with header + chunks."""
    reader = MagicMock()
    reader.readexactly = AsyncMock(return_value=header)
    reader.read = AsyncMock(side_effect=chunks if chunks is not None else [BODY])

    writer = MagicMock()
    writer.write = MagicMock()
    writer.drain = AsyncMock()
    writer.close = MagicMock()
    writer.wait_closed = AsyncMock()
    return reader, writer


@pytest.fixture
def transport():
    return TCPTransport(host="127.0.0.1", port=5000, timeout=0.3)


class TestTimeout:
    def test_timeout_is_floored(self) -> None:
        assert TCPTransport("h", 1, timeout=0.01).timeout == MIN_TIMEOUT_SECONDS

    def test_timeout_kept_above_floor(self) -> None:
        assert TCPTransport("h", 1, timeout=2.5).timeout == pytest.approx(2.5)

    def test_repr(self) -> None:
        assert repr(TCPTransport("10.0.0.5", 5000, timeout=1.0)) == "TCPTransport(10.0.0.5:5000, timeout=1.00s)"


@pytest.mark.asyncio
async def test_transact_success(transport):
    """Request is written, response is header + body, connection closed."""
    reader, writer = make_streams()
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))) as mock_open:
        response = await transport.transact(GET_POWER_REQUEST.raw)

    assert response == POWER_ON_REPORT.raw
    mock_open.assert_awaited_once_with("127.0.0.1", 5000)
    writer.write.assert_called_once_with(GET_POWER_REQUEST.raw)
    reader.readexactly.assert_awaited_once_with(5)
    reader.read.assert_awaited_once_with(len(BODY))
    writer.close.assert_called_once()
    writer.wait_closed.assert_awaited_once()


@pytest.mark.asyncio
async def test_body_read_in_chunks(transport):
    reader, writer = make_streams(chunks=[BODY[:1], BODY[1:3], BODY[3:]])
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        response = await transport.transact(GET_POWER_REQUEST.raw)

    assert response == POWER_ON_REPORT.raw
    assert reader.read.await_count == 3


@pytest.mark.asyncio
async def test_early_eof_returns_partial_body(transport):
    reader, writer = make_streams(chunks=[BODY[:2], b""])
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        response = await transport.transact(GET_POWER_REQUEST.raw)

    assert response == HEADER + BODY[:2]
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_connect_refused(transport):
    refused = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
    with patch("asyncio.open_connection", AsyncMock(side_effect=refused)):
        err = await expect_async_exception(transport.transact, ConnectError, GET_POWER_REQUEST.raw)

    assert err.reason == f"Connection refused ({errno.ECONNREFUSED})"
    assert err.last_error.startswith("Connect failed: Connection refused")
    assert err.host == "127.0.0.1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        UnicodeError("encoding with 'idna' codec failed (UnicodeError: label empty or too long)"),
        OverflowError("connect(): port must be 0-65535."),
    ],
)
async def test_unusable_address_is_connect_error(transport, error):
    with patch("asyncio.open_connection", AsyncMock(side_effect=error)):
        err = await expect_async_exception(transport.transact, ConnectError, GET_POWER_REQUEST.raw)

    assert err.reason == str(error)
    assert err.last_error == f"Connect failed: {error}"


@pytest.mark.asyncio
async def test_port_out_of_range_is_connect_error():
    transport = TCPTransport("127.0.0.1", 70000, timeout=0.5)

    err = await expect_async_exception(transport.transact, ConnectError, GET_POWER_REQUEST.raw)

    assert err.port == 70000


@pytest.mark.asyncio
async def test_connect_timeout(transport):
    async def slow_connect(*_args, **_kwargs):
        await asyncio.sleep(5.0)

    with patch("asyncio.open_connection", side_effect=slow_connect):
        err = await expect_async_exception(transport.transact, ConnectError, GET_POWER_REQUEST.raw)

    assert err.reason == "timeout"
    assert err.last_error == "Connect failed: timeout"


@pytest.mark.asyncio
async def test_empty_request_is_write_error(transport):
    reader, writer = make_streams()
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        err = await expect_async_exception(transport.transact, WriteError, b"")

    assert err.last_error == "Write failed"
    writer.write.assert_not_called()
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_write_failure_closes_connection(transport):
    reader, writer = make_streams()
    writer.drain = AsyncMock(side_effect=ConnectionResetError("reset"))
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        err = await expect_async_exception(transport.transact, WriteError, GET_POWER_REQUEST.raw)

    assert err.reason == "reset"
    reader.readexactly.assert_not_awaited()
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_short_header(transport):
    reader, writer = make_streams()
    reader.readexactly = AsyncMock(side_effect=asyncio.IncompleteReadError(b"\x21\x01", 5))
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        err = await expect_async_exception(transport.transact, ReadTimeoutError, GET_POWER_REQUEST.raw)

    assert err.stage == "header"
    assert err.received == 2
    assert err.last_error == "Read header failed"
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_header_timeout(transport):
    async def never(_n):
        await asyncio.sleep(5.0)

    reader, writer = make_streams()
    reader.readexactly = AsyncMock(side_effect=never)
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        err = await expect_async_exception(transport.transact, ReadTimeoutError, GET_POWER_REQUEST.raw)

    assert err.reason == "header_timeout"


@pytest.mark.asyncio
async def test_payload_timeout(transport):
    calls = 0

    async def first_byte_then_stall(_n):
        nonlocal calls
        calls += 1
        if calls == 1:
            return BODY[:1]
        await asyncio.sleep(5.0)
        return b""

    reader, writer = make_streams()
    reader.read = AsyncMock(side_effect=first_byte_then_stall)
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        err = await expect_async_exception(transport.transact, ReadTimeoutError, GET_POWER_REQUEST.raw)

    assert err.stage == "payload"
    assert err.received == 1
    assert err.last_error == "Read payload failed"
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_close_errors_are_ignored(transport):
    reader, writer = make_streams()
    writer.wait_closed = AsyncMock(side_effect=BrokenPipeError("gone"))
    with patch("asyncio.open_connection", AsyncMock(return_value=(reader, writer))):
        response = await transport.transact(GET_POWER_REQUEST.raw)

    assert response == POWER_ON_REPORT.raw
