"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every way a request can fail has its own exception class. Each one carries
the HTTP status it maps to when the server runs with error responses
enabled:

    ┌────────────────────────┬────────┬──────────────────────────────────┐
    │ Exception              │ Status │ Raised when                      │
    ├────────────────────────┼────────┼──────────────────────────────────┤
    │ MalformedRequest       │  400   │ request does not start "GET /"   │
    │ UnknownRoute           │  400   │ target has no registered route   │
    │ ReadTimeout            │  408   │ client never finished sending    │
    │ RequestTooLarge        │  413   │ request exceeds the size cap     │
    │ MetricUnavailable      │  500   │ source unreadable / field absent │
    │ NameTooLong            │  500   │ host name does not fit the bound │
    │ CorruptSource          │  500   │ numeric parse failure            │
    │ AllocationFailure      │  500   │ out of memory building response  │
    └────────────────────────┴────────┴──────────────────────────────────┘

UnknownRoute is the only one that always reaches the client. The others
are silent by default: the connection is closed without a reply.

Status codes are kept as plain integers here so this module has no
imports from the rest of the package.

=============================================================================
"""

from typing import Optional


class ServiceError(Exception):
    """
    Base class for all request handling failures.

    Args:
        message: Human-readable description for the log.
        target: Request target involved, if known.
    """

    status_code: int = 500

    def __init__(self, message: str, target: Optional[str] = None):
        super().__init__(message)
        self.target = target


class MalformedRequest(ServiceError):
    """The request line does not begin with ``GET /``."""

    status_code = 400


class RequestTooLarge(ServiceError):
    """The request reached ``max_request_size`` bytes."""

    status_code = 413


class ReadTimeout(ServiceError):
    """The client did not finish sending its request before the deadline."""

    status_code = 408


class UnknownRoute(ServiceError):
    """A well-formed request for a target nobody serves."""

    status_code = 400


class MetricError(ServiceError):
    """
    Base class for failures while reading a system metric.

    ``source`` names what failed (a file path or "hostname") so the
    operator can tell which input is broken.
    """

    def __init__(self, message: str, source: str, target: Optional[str] = None):
        super().__init__(message, target)
        self.source = source


class MetricUnavailable(MetricError):
    """The source could not be read or the expected field is missing."""


class NameTooLong(MetricError):
    """The host name does not fit in the 1024-byte bound."""


class CorruptSource(MetricError):
    """The statistics source holds something other than the expected numbers."""


class AllocationFailure(ServiceError):
    """Memory ran out while serialising a response."""
