"""Transport package - one TCP connection per request/response transaction."""

from iiyama_display.transport.exceptions import ConnectError, ReadTimeoutError, WriteError
from iiyama_display.transport.tcp_transport import MIN_TIMEOUT_SECONDS, TCPTransport

__all__ = [
    "MIN_TIMEOUT_SECONDS",
    "ConnectError",
    "ReadTimeoutError",
    "TCPTransport",
    "WriteError",
]
