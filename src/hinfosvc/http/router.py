"""
=============================================================================
REQUEST ROUTING
=============================================================================

The router is the whole request pipeline between "bytes arrived" and
"bytes to send":

    raw bytes
        │
        ▼
    RequestParser.parse()  ──── MalformedRequest / RequestTooLarge ───┐
        │                                                             │
        ▼                                                             │
    exact match on target  ──── UnknownRoute ──► 400 Bad Request      │
        │                                                             │
        ▼                                                             │
    route.handler()        ──── MetricError ──────────────────────────┤
        │                                                             │
        ▼                                                             ▼
    200 OK + body                                            error policy

=============================================================================
ROUTE TABLE
=============================================================================

Targets are matched by exact string comparison; there are no patterns, no
parameters, no query strings. A handler takes no arguments and returns the
body text:

    router = Router()

    @router.get("hostname")
    def hostname():
        return socket.gethostname()

=============================================================================
ERROR POLICY
=============================================================================

An unknown target is always answered with 400 and an empty body. For
every other failure the router either:

    error_responses=False    returns None; the connection is closed
                             without a reply (the classic behaviour)

    error_responses=True     returns an empty-bodied response carrying the
                             exception's status_code (400, 408, 413, 500)

Either way the failure is logged with the target and the failing source.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..errors import MetricError, ServiceError, UnknownRoute
from .request import Request, RequestParser
from .response import HTTPResponse, bad_request, error, ok
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


Handler = Callable[[], str]


@dataclass
class Route:
    """A target bound to the handler that produces its body."""

    target: str
    handler: Handler
    name: Optional[str] = None


@dataclass
class RouteOutcome:
    """
    What happened to one raw request.

    Attributes:
        target: Parsed target, None if the request never parsed.
        response: What to send, None to close silently.
        error: The failure, if any.
    """

    target: Optional[str] = None
    response: Optional[HTTPResponse] = None
    error: Optional[ServiceError] = None


class Router:
    """
    Maps request targets to metric handlers.

    Args:
        parser: Request parser (carries the size limit).
        error_responses: Answer failures with a status instead of silence.
    """

    def __init__(
        self,
        parser: Optional[RequestParser] = None,
        error_responses: bool = False,
    ):
        self.parser = parser or RequestParser()
        self.error_responses = error_responses
        self._routes: Dict[str, Route] = {}

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(self, target: str, handler: Handler, name: Optional[str] = None) -> Route:
        """
        Register a handler for a target.

        A leading slash is accepted and dropped, so "/load" and "load"
        register the same route.

        Raises:
            ValueError: The target is already registered.
        """
        target = target.lstrip("/")
        if target in self._routes:
            raise ValueError(f"Route already registered: /{target}")

        route = Route(target=target, handler=handler, name=name or target)
        self._routes[target] = route
        return route

    def get(self, target: str, name: Optional[str] = None):
        """Decorator form of add_route."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(target, handler, name=name)
            return handler
        return decorator

    @property
    def routes(self) -> List[Route]:
        return list(self._routes.values())

    # =========================================================================
    # MATCHING AND DISPATCH
    # =========================================================================

    def match(self, target: str) -> Optional[Route]:
        return self._routes.get(target)

    def dispatch(self, request: Request) -> HTTPResponse:
        """
        Run the handler for a parsed request.

        Raises:
            UnknownRoute: No route for the target.
            MetricError: The handler failed; target is filled in.
        """
        route = self.match(request.target)
        if route is None:
            raise UnknownRoute(f"No route for /{request.target}", target=request.target)

        try:
            body = route.handler()
        except MetricError as e:
            e.target = request.target
            raise

        logger.info(f"Serving a request for '{request.target}'")
        return ok(body)

    def process(self, raw: bytes) -> RouteOutcome:
        """
        Parse, dispatch and apply the error policy.

        Never raises ServiceError; the failure is reported in the outcome.
        """
        outcome = RouteOutcome()

        try:
            request = self.parser.parse(raw)
            outcome.target = request.target
            outcome.response = self.dispatch(request)
        except UnknownRoute as e:
            logger.warning(f"Bad request received: {e.target}")
            outcome.error = e
            outcome.response = bad_request()
        except ServiceError as e:
            outcome.error = e
            outcome.response = self.reject(e)

        return outcome

    def handle(self, raw: bytes) -> Optional[HTTPResponse]:
        """
        Turn one raw request into the response to send.

        Returns:
            The response, or None if the connection should close silently.
        """
        return self.process(raw).response

    def reject(self, error_: ServiceError) -> Optional[HTTPResponse]:
        """
        Apply the error policy to a failure.

        Also used by the server for failures raised while reading, before
        there is anything to parse.
        """
        if isinstance(error_, MetricError):
            logger.error(
                f"Request for '{error_.target}' failed reading {error_.source}: {error_}"
            )
        else:
            logger.warning(f"Rejected request: {error_}")

        if not self.error_responses:
            logger.debug("Not serving, closing connection without a response")
            return None

        return error(HTTPStatus(error_.status_code))
