"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The statuses this service can send, with their reason phrases.

    200 OK                      - metric served
    400 Bad Request             - unknown target (always), malformed request
    408 Request Timeout         - client too slow            (error responses)
    413 Payload Too Large       - request over the size cap  (error responses)
    500 Internal Server Error   - metric read failed         (error responses)
    503 Service Unavailable     - worker queue full          (error responses)

The reason phrase is what follows the code on the status line:

    HTTP/1.1 400 Bad Request
             ─── ───────────
              │       │
              │       └── phrase
              └────────── code

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the service.

        >>> HTTPStatus.OK == 200
        True
        >>> str(HTTPStatus.BAD_REQUEST)
        '400 Bad Request'
    """

    OK = 200

    BAD_REQUEST = 400
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for this status code."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        return self >= 400

    def __str__(self) -> str:
        # Status line form, e.g. "200 OK"
        return f"{self.value} {self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
