"""One-shot asyncio TCP transport with deadlines and instrumentation.

Every call to :meth:`TCPTransport.transact` opens a fresh connection, writes
one request frame, reads one response frame and closes the connection again.
"""

from __future__ import annotations

import asyncio
import logging
import time

from iiyama_display.instrumentation import timed_async
from iiyama_display.protocol.constants import REPORT_PREAMBLE_LENGTH
from iiyama_display.transport.exceptions import ConnectError, ReadTimeoutError, WriteError

logger = logging.getLogger(__name__)

MIN_TIMEOUT_SECONDS = 0.25


class TCPTransport:
    """Request/response transport for a single display."""

    def __init__(self, host: str, port: int, timeout: float = 1.0):
        """
        Initialize transport parameters.

        Args:
            host: Display host name or address
            port: Display control port
            timeout: Connect and read/write timeout in seconds (floored at 250ms)
        """
        self.host = host
        self.port = port
        self.timeout = max(MIN_TIMEOUT_SECONDS, float(timeout))

    @timed_async("tcp_transact")
    async def transact(self, request: bytes) -> bytes:
        """
        Send one request and read one response frame.

        The response is read as a 5-byte preamble followed by as many bytes as
        the preamble's length byte announces. If the peer closes early the
        bytes accumulated so far are returned; the frame decoder rejects them.

        Args:
            request: Complete request frame

        Returns:
            Raw response bytes

        Raises:
            ConnectError: Connection could not be established
            WriteError: Request could not be written
            ReadTimeoutError: Preamble or body did not arrive in time
        """
        reader, writer = await self._connect()
        try:
            await self._write(writer, request)
            header = await self._read_header(reader)
            body = await self._read_body(reader, header[-1])
            response = header + body
            logger.debug(
                "Received %d bytes from %s:%d: %s",
                len(response),
                self.host,
                self.port,
                response.hex(" "),
                extra={"host": self.host, "port": self.port, "bytes": len(response)},
            )
            return response
        finally:
            await self._close(writer)

    async def _connect(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        start_time = time.perf_counter()
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "Connection to %s:%d timed out after %.1fms",
                self.host,
                self.port,
                elapsed_ms,
                extra={"host": self.host, "port": self.port, "elapsed_ms": elapsed_ms, "error": "timeout"},
            )
            raise ConnectError("timeout", self.host, self.port) from e
        except OSError as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "Connection to %s:%d failed after %.1fms: %s",
                self.host,
                self.port,
                elapsed_ms,
                e,
                extra={"host": self.host, "port": self.port, "elapsed_ms": elapsed_ms, "error": str(e)},
            )
            reason = e.strerror or str(e) or type(e).__name__
            if e.errno is not None:
                reason = f"{reason} ({e.errno})"
            raise ConnectError(reason, self.host, self.port) from e
        except (ValueError, OverflowError) as e:
            # bad host label (UnicodeError) or port out of range
            logger.warning(
                "Cannot connect to %s:%d: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            raise ConnectError(str(e) or type(e).__name__, self.host, self.port) from e

        logger.debug(
            "Connected to %s:%d in %.1fms",
            self.host,
            self.port,
            (time.perf_counter() - start_time) * 1000,
            extra={"host": self.host, "port": self.port},
        )
        return reader, writer

    async def _write(self, writer: asyncio.StreamWriter, request: bytes) -> None:
        if not request:
            raise WriteError("empty_request")
        try:
            # StreamWriter buffers partial socket writes; drain() completes them
            writer.write(request)
            await asyncio.wait_for(writer.drain(), timeout=self.timeout)
        except TimeoutError as e:
            logger.warning(
                "Send to %s:%d timed out",
                self.host,
                self.port,
                extra={"host": self.host, "port": self.port, "error": "timeout"},
            )
            raise WriteError("timeout") from e
        except OSError as e:
            logger.warning(
                "Send to %s:%d failed: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            raise WriteError(str(e) or type(e).__name__) from e

        logger.debug(
            "Sent %d bytes to %s:%d: %s",
            len(request),
            self.host,
            self.port,
            request.hex(" "),
            extra={"host": self.host, "port": self.port, "bytes": len(request)},
        )

    async def _read_header(self, reader: asyncio.StreamReader) -> bytes:
        try:
            return await asyncio.wait_for(
                reader.readexactly(REPORT_PREAMBLE_LENGTH),
                timeout=self.timeout,
            )
        except asyncio.IncompleteReadError as e:
            logger.warning(
                "Connection closed by %s:%d after %d header bytes",
                self.host,
                self.port,
                len(e.partial),
                extra={"host": self.host, "port": self.port, "received": len(e.partial)},
            )
            raise ReadTimeoutError("header", len(e.partial)) from e
        except (TimeoutError, OSError) as e:
            logger.warning(
                "Receive header from %s:%d failed: %s",
                self.host,
                self.port,
                type(e).__name__,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            raise ReadTimeoutError("header") from e

    async def _read_body(self, reader: asyncio.StreamReader, length: int) -> bytes:
        body = bytearray()
        while len(body) < length:
            try:
                chunk = await asyncio.wait_for(
                    reader.read(length - len(body)),
                    timeout=self.timeout,
                )
            except (TimeoutError, OSError) as e:
                logger.warning(
                    "Receive payload from %s:%d failed after %d/%d bytes",
                    self.host,
                    self.port,
                    len(body),
                    length,
                    extra={"host": self.host, "port": self.port, "received": len(body), "expected": length},
                )
                raise ReadTimeoutError("payload", len(body)) from e
            if not chunk:
                logger.warning(
                    "Connection closed by %s:%d after %d/%d payload bytes",
                    self.host,
                    self.port,
                    len(body),
                    length,
                    extra={"host": self.host, "port": self.port, "received": len(body), "expected": length},
                )
                break
            body.extend(chunk)
        return bytes(body)

    async def _close(self, writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.debug(
                "Error closing connection to %s:%d: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )

    def __repr__(self) -> str:
        """String representation."""
        return f"TCPTransport({self.host}:{self.port}, timeout={self.timeout:.2f}s)"
