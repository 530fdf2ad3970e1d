"""
=============================================================================
HTTP LAYER
=============================================================================

Just enough HTTP/1.1 for a three-endpoint service:

    request.py       "GET /<target> ..." → Request
    router.py        Request → handler → HTTPResponse (or silence)
    response.py      HTTPResponse → status line, 2 headers, body
    status_codes.py  the handful of statuses we send

A full exchange:

    GET /cpu-name HTTP/1.1\r\n
    Host: localhost:8080\r\n
    \r\n

    HTTP/1.1 200 OK\r\n
    Content-Length: 40\r\n
    Connection: close\r\n
    \r\n
    Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz

=============================================================================
"""

from .request import Request, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    build_response,
    ok,             # 200 OK
    bad_request,    # 400 Bad Request
    error,          # any status, empty body
)
from .router import Router, Route, RouteOutcome
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "Request",
    "RequestParser",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "build_response",
    "ok",
    "bad_request",
    "error",

    # Routing
    "Router",
    "Route",
    "RouteOutcome",

    # Status codes
    "HTTPStatus",
]
