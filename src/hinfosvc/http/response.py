"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Every response this service sends has the same shape:

    HTTP/1.1 200 OK\r\n               ← status line
    Content-Length: 21\r\n            ← exact byte length of the body
    Connection: close\r\n             ← we never keep a connection open
    \r\n                              ← blank line ends the headers
    Intel(R) Core(TM) i7              ← body, sent as-is

=============================================================================
WHY ONLY TWO HEADERS?
=============================================================================

The body is plain text and the connection always closes after one
response, so the client needs exactly two facts to read it correctly:

- Content-Length tells it where the body ends
- Connection: close tells it not to send another request

No Date, Server or Content-Type header is added. The body is never
transformed (no compression, no charset conversion beyond UTF-8).

=============================================================================
CONTENT-LENGTH COUNTS BYTES, NOT CHARACTERS
=============================================================================

    >>> len("Ryzen™")
    6
    >>> len("Ryzen™".encode("utf-8"))
    8

A CPU model string may contain non-ASCII characters, so the length is
always taken from the encoded body.

=============================================================================
"""

from dataclasses import dataclass
from typing import Union

from ..errors import AllocationFailure
from .status_codes import HTTPStatus


Status = Union[HTTPStatus, str]


@dataclass
class HTTPResponse:
    """
    A response ready to be serialised.

    Attributes:
        status: HTTPStatus member, or a preformatted literal like "200 OK".
        body: Response body (text or raw bytes).
        version: Protocol version on the status line.
    """

    status: Status = HTTPStatus.OK
    body: Union[str, bytes] = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 400 Bad Request"
        """
        return f"{self.version} {self.status}"

    @property
    def status_code(self) -> int:
        """Numeric status, also for literal statuses like "200 OK"."""
        if isinstance(self.status, HTTPStatus):
            return int(self.status)
        return int(self.status.split(" ", 1)[0])

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def content_length(self) -> int:
        return len(self.body_bytes)

    def to_bytes(self) -> bytes:
        """
        Serialise the response.

        Returns:
            Status line, Content-Length, Connection: close, blank line, body.

        Raises:
            AllocationFailure: If memory runs out while assembling the bytes.
        """
        try:
            body = self.body_bytes
            head = (
                f"{self.status_line}\r\n"
                f"Content-Length: {len(body)}\r\n"
                f"Connection: close\r\n"
                f"\r\n"
            )
            return head.encode("ascii") + body
        except MemoryError as e:
            raise AllocationFailure(f"Could not allocate memory for a response: {e}")


class ResponseBuilder:
    """
    Fluent builder for responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("myhost")
            .build())

    Status defaults to 200 OK and the body to empty.
    """

    def __init__(self):
        self._status: Status = HTTPStatus.OK
        self._body: Union[str, bytes] = b""

    def status(self, status: Status) -> "ResponseBuilder":
        self._status = status
        return self

    def text(self, text: str) -> "ResponseBuilder":
        self._body = text
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(status=self._status, body=self._body)

    def to_bytes(self) -> bytes:
        """Build and serialise in one step."""
        return self.build().to_bytes()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def build_response(status: Status, body: Union[str, bytes] = "") -> bytes:
    """
    Format a complete response in one call.

    Args:
        status: HTTPStatus or a literal such as "400 Bad Request".
        body: Response body, may be empty.

    Returns:
        The exact bytes to write to the socket.

    Example:
        >>> build_response("400 Bad Request", "")
        b'HTTP/1.1 400 Bad Request\\r\\nContent-Length: 0\\r\\nConnection: close\\r\\n\\r\\n'
    """
    return HTTPResponse(status=status, body=body).to_bytes()


def ok(body: str) -> HTTPResponse:
    """200 OK with a text body."""
    return ResponseBuilder().status(HTTPStatus.OK).text(body).build()


def bad_request() -> HTTPResponse:
    """400 Bad Request with an empty body."""
    return ResponseBuilder().status(HTTPStatus.BAD_REQUEST).build()


def error(status: HTTPStatus) -> HTTPResponse:
    """Any error status with an empty body."""
    return ResponseBuilder().status(status).build()
