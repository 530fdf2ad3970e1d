"""
=============================================================================
CONNECTION HANDLING
=============================================================================

One accepted socket, one request, one response, then close.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

A request line can arrive split across several recv() calls:

    First recv():  "GET /cpu-"
    Second recv(): "name HTTP/1.1\r\nHost: x\r\n\r\n"

So reading accumulates into a buffer and stops at the first of:

    ┌──────────────────────────┬────────────────────────────────────────┐
    │ Condition                │ Result                                 │
    ├──────────────────────────┼────────────────────────────────────────┤
    │ "\n" in buffer           │ buffer returned                        │
    │ client closed (EOF)      │ buffer returned (None if nothing came) │
    │ buffer >= max size       │ RequestTooLarge                        │
    │ deadline passed          │ ReadTimeout                            │
    └──────────────────────────┴────────────────────────────────────────┘

Only the request line matters, so the first "\n" ends the read; a
client that sends "GET /load HTTP/1.0\n" and waits is answered at once.
Headers and bodies are never parsed.

The deadline covers the whole request, not each recv(); a client
trickling one byte a second cannot hold a worker forever. The drain in
close() has its own overall limit for the same reason.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import ReadTimeout, RequestTooLarge
from ..http.request import DEFAULT_MAX_REQUEST_SIZE


logger = logging.getLogger(__name__)


LINE_END = b"\n"

# Total time close() spends discarding what the client still sends
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""

    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for log lines.
        state: Current connection state.
        created_at: Monotonic timestamp of accept.
        bytes_sent: Response bytes written so far.
    """

    socket: socket.socket
    address: tuple
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    bytes_sent: int = 0

    buffer_size: int = 4096
    timeout: Optional[float] = 30.0
    max_request_size: int = DEFAULT_MAX_REQUEST_SIZE

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.monotonic() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Read one request from the socket.

        Returns:
            The request bytes, or None if the client closed without
            sending anything.

        Raises:
            RequestTooLarge: max_request_size bytes arrived before the
                             request line ended.
            ReadTimeout: The deadline passed first.
        """
        self.state = ConnectionState.READING
        deadline = time.monotonic() + self.timeout if self.timeout else None
        buffer = b""

        while LINE_END not in buffer:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ReadTimeout(f"[{self.id}] Request not complete after {self.timeout}s")
                self.socket.settimeout(remaining)

            try:
                chunk = self._recv()
            except socket.timeout:
                raise ReadTimeout(f"[{self.id}] Request not complete after {self.timeout}s")

            if not chunk:
                break

            buffer += chunk
            if len(buffer) >= self.max_request_size:
                raise RequestTooLarge(
                    f"[{self.id}] Request too large: at least {self.max_request_size} bytes"
                )

        if not buffer:
            return None
        return buffer

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def send_response(self, data: bytes) -> bool:
        """
        Send the whole response.

        Returns:
            True if every byte was handed to the kernel, False if the
            client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.bytes_sent += len(data)
        return True

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) sends FIN so the client sees the end of the
        response, then whatever the client still sends is drained for at most
        DRAIN_TIMEOUT seconds before the descriptor is released.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # client already gone

        deadline = time.monotonic() + DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
