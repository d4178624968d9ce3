"""Exception types for transport layer errors.

Extends the protocol exception hierarchy so callers can catch every
communication failure through :class:`IiyamaError`.
"""

from __future__ import annotations

from iiyama_display.protocol.exceptions import IiyamaError


class ConnectError(IiyamaError):
    """TCP connection to the display could not be established.

    Raised when:
    - Connect attempt timed out
    - Connection refused / host unreachable

    Attributes:
        host: Target host
        port: Target port

    """

    def __init__(self, reason: str, host: str, port: int):
        self.host = host
        self.port = port
        super().__init__(reason, f"Connect failed: {reason}")


class WriteError(IiyamaError):
    """Request frame could not be written completely.

    Raised when:
    - Socket error while writing
    - Write did not drain within the timeout
    - Zero bytes accepted for a non-empty request

    """

    def __init__(self, reason: str):
        super().__init__(reason, "Write failed")


class ReadTimeoutError(IiyamaError):
    """Response did not arrive in time.

    Attributes:
        stage: "header" for the 5-byte preamble, "payload" for the body
        received: Number of bytes received for that stage before failing

    """

    def __init__(self, stage: str, received: int = 0):
        self.stage = stage
        self.received = received
        super().__init__(f"{stage}_timeout", f"Read {stage} failed")
