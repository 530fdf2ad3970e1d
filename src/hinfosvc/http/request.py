"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

The service answers exactly one request shape:

    GET /<target> <anything>
    ─── ─ ──────── ──────────
     │  │    │         │
     │  │    │         └── ignored (version, headers, body)
     │  │    └──────────── up to the first space or end of buffer
     │  └───────────────── literal slash, stripped from the target
     └──────────────────── the only accepted method

So instead of a full HTTP/1.1 parser we tokenize the buffer:

    1. Size check          len(data) >= max_request_size → RequestTooLarge
    2. Prefix check        data[:5] != b"GET /"          → MalformedRequest
    3. Split on space      data[5:].split(b" ", 1)[0]    → target

Examples:

    b"GET /hostname HTTP/1.1\\r\\n\\r\\n"   → target "hostname"
    b"GET /load"                          → target "load"
    b"GET / HTTP/1.1\\r\\n\\r\\n"           → target ""   (no route matches)
    b"POST /load HTTP/1.1\\r\\n\\r\\n"      → MalformedRequest
    b"get /load HTTP/1.1\\r\\n\\r\\n"       → MalformedRequest (case matters)

Query strings are not interpreted: "load?x=1" is simply a target that no
route serves.

=============================================================================
"""

from dataclasses import dataclass

from ..errors import MalformedRequest, RequestTooLarge


REQUEST_PREFIX = b"GET /"

# Matches the read buffer of the original service
DEFAULT_MAX_REQUEST_SIZE = 8096


@dataclass(frozen=True)
class Request:
    """
    A parsed request.

    Attributes:
        target: Path after "GET /", without the leading slash.
        raw: The bytes the target was parsed from.
    """

    target: str
    raw: bytes = b""

    @property
    def path(self) -> str:
        """Target with its leading slash restored, for logging."""
        return "/" + self.target


class RequestParser:
    """
    Turns the bytes received on one connection into a Request.

    Args:
        max_request_size: Buffers of this many bytes or more are refused.
    """

    def __init__(self, max_request_size: int = DEFAULT_MAX_REQUEST_SIZE):
        self.max_request_size = max_request_size

    def parse(self, data: bytes) -> Request:
        """
        Parse one raw request buffer.

        Raises:
            RequestTooLarge: Buffer is max_request_size bytes or longer.
            MalformedRequest: Buffer does not begin with "GET /".
        """
        if len(data) >= self.max_request_size:
            raise RequestTooLarge(
                f"A HTTP request longer than the limit ({self.max_request_size}) "
                f"was received: {len(data)} bytes"
            )

        if not data.startswith(REQUEST_PREFIX):
            raise MalformedRequest(
                f"The beginning of the received HTTP request is invalid: {data[:16]!r}"
            )

        target_bytes = data[len(REQUEST_PREFIX):].split(b" ", 1)[0]
        target = target_bytes.decode("utf-8", errors="replace")

        return Request(target=target, raw=data)


def parse_request(data: bytes, max_size: int = DEFAULT_MAX_REQUEST_SIZE) -> Request:
    """Parse with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data)
