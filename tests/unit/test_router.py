"""
Unit tests for the request router.
"""

import logging

import pytest

from hinfosvc.config import ServerConfig
from hinfosvc.errors import (
    CorruptSource,
    MetricUnavailable,
    ReadTimeout,
    RequestTooLarge,
    UnknownRoute,
)
from hinfosvc.http.request import Request, RequestParser
from hinfosvc.http.router import Router
from hinfosvc.http.status_codes import HTTPStatus
from hinfosvc.server import create_router

from conftest import CPU_NAME, HOSTNAME


def failing_handler():
    raise MetricUnavailable("Could not open file /nope", source="/nope")


def make_router(error_responses: bool = False) -> Router:
    router = Router(error_responses=error_responses)
    router.add_route("hostname", lambda: "myhost")
    router.add_route("broken", failing_handler)
    return router


class TestRouteTable:
    """Tests for route registration and matching."""

    def test_add_route(self):
        router = Router()
        route = router.add_route("hostname", lambda: "x")

        assert route.target == "hostname"
        assert route.name == "hostname"
        assert router.routes == [route]

    def test_leading_slash_is_dropped(self):
        router = Router()
        router.add_route("/load", lambda: "1%")
        assert router.match("load") is not None

    def test_duplicate_route_rejected(self):
        router = Router()
        router.add_route("load", lambda: "1%")
        with pytest.raises(ValueError):
            router.add_route("/load", lambda: "2%")

    def test_decorator(self):
        router = Router()

        @router.get("cpu-name", name="cpu")
        def cpu_name():
            return "CPU"

        route = router.match("cpu-name")
        assert route.handler is cpu_name
        assert route.name == "cpu"

    def test_match_is_exact(self):
        router = make_router()

        assert router.match("hostname") is not None
        assert router.match("hostname/") is None
        assert router.match("Hostname") is None
        assert router.match("hostname?x=1") is None
        assert router.match("") is None


class TestDispatch:
    """Tests for Router.dispatch()."""

    def test_success(self):
        response = make_router().dispatch(Request(target="hostname"))

        assert response.status == HTTPStatus.OK
        assert response.body == "myhost"

    def test_unknown_route_raises(self):
        with pytest.raises(UnknownRoute) as exc_info:
            make_router().dispatch(Request(target="nope"))
        assert exc_info.value.target == "nope"

    def test_metric_failure_carries_target(self):
        with pytest.raises(MetricUnavailable) as exc_info:
            make_router().dispatch(Request(target="broken"))

        assert exc_info.value.target == "broken"
        assert exc_info.value.source == "/nope"


class TestHandle:
    """Tests for Router.handle() and its error policy."""

    def test_success(self):
        response = make_router().handle(b"GET /hostname HTTP/1.1\r\n\r\n")
        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\nContent-Length: 6\r\nConnection: close\r\n\r\nmyhost"
        )

    @pytest.mark.parametrize("raw", [
        b"GET /unknown HTTP/1.1\r\n\r\n",
        b"GET / HTTP/1.1\r\n\r\n",
        b"GET /hostname/ HTTP/1.1\r\n\r\n",
    ])
    @pytest.mark.parametrize("error_responses", [False, True])
    def test_unknown_route_always_400(self, raw: bytes, error_responses: bool):
        response = make_router(error_responses).handle(raw)
        assert response.to_bytes() == (
            b"HTTP/1.1 400 Bad Request\r\nContent-Length: 0\r\nConnection: close\r\n\r\n"
        )

    def test_malformed_is_silent_by_default(self):
        assert make_router().handle(b"POST /hostname HTTP/1.1\r\n\r\n") is None

    def test_metric_failure_is_silent_by_default(self):
        assert make_router().handle(b"GET /broken HTTP/1.1\r\n\r\n") is None

    def test_too_large_is_silent_by_default(self):
        router = Router(parser=RequestParser(max_request_size=16))
        assert router.handle(b"GET /hostname HTTP/1.1\r\n\r\n") is None

    def test_malformed_with_error_responses(self):
        response = make_router(error_responses=True).handle(b"PUT / HTTP/1.1\r\n\r\n")
        assert response.status == HTTPStatus.BAD_REQUEST

    def test_metric_failure_with_error_responses(self):
        response = make_router(error_responses=True).handle(b"GET /broken HTTP/1.1\r\n\r\n")
        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.content_length == 0

    def test_too_large_with_error_responses(self):
        router = Router(parser=RequestParser(max_request_size=16), error_responses=True)
        response = router.handle(b"GET /hostname HTTP/1.1\r\n\r\n")
        assert response.status == HTTPStatus.PAYLOAD_TOO_LARGE

    def test_reject_read_timeout(self):
        """Failures raised before parsing go through the same policy."""
        error = ReadTimeout("slow client")

        assert make_router().reject(error) is None
        assert make_router(error_responses=True).reject(error).status == HTTPStatus.REQUEST_TIMEOUT


class TestProcess:
    """Tests for Router.process() outcomes."""

    def test_success_outcome(self):
        outcome = make_router().process(b"GET /hostname HTTP/1.1\r\n\r\n")

        assert outcome.target == "hostname"
        assert outcome.error is None
        assert outcome.response.status == HTTPStatus.OK

    def test_unknown_route_outcome(self):
        outcome = make_router().process(b"GET /x HTTP/1.1\r\n\r\n")

        assert outcome.target == "x"
        assert isinstance(outcome.error, UnknownRoute)
        assert outcome.response.status == HTTPStatus.BAD_REQUEST

    def test_unparsed_outcome_has_no_target(self):
        outcome = make_router().process(b"HEAD / HTTP/1.1\r\n\r\n")

        assert outcome.target is None
        assert outcome.response is None

    def test_corrupt_source_outcome(self):
        router = Router()

        @router.get("load")
        def load():
            raise CorruptSource("bad counters", source="/proc/stat")

        outcome = router.process(b"GET /load HTTP/1.1\r\n\r\n")
        assert isinstance(outcome.error, CorruptSource)
        assert outcome.error.target == "load"
        assert outcome.response is None


class TestLogging:
    """Log lines emitted while routing."""

    def test_serving_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="hinfosvc.http.router"):
            make_router().handle(b"GET /hostname HTTP/1.1\r\n\r\n")
        assert "Serving a request for 'hostname'" in caplog.text

    def test_bad_request_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="hinfosvc.http.router"):
            make_router().handle(b"GET /whatever HTTP/1.1\r\n\r\n")
        assert "Bad request received: whatever" in caplog.text

    def test_metric_failure_logs_target_and_source(self, caplog):
        with caplog.at_level(logging.INFO, logger="hinfosvc.http.router"):
            make_router().handle(b"GET /broken HTTP/1.1\r\n\r\n")

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "'broken'" in errors[0].getMessage()
        assert "/nope" in errors[0].getMessage()


class TestServiceRoutes:
    """The route table the server installs."""

    def test_three_routes(self, reader):
        router = create_router(ServerConfig(), reader)
        assert sorted(r.target for r in router.routes) == ["cpu-name", "hostname", "load"]

    def test_hostname(self, reader):
        response = create_router(ServerConfig(), reader).handle(b"GET /hostname HTTP/1.1\r\n\r\n")
        assert response.body == HOSTNAME

    def test_cpu_name(self, reader):
        response = create_router(ServerConfig(), reader).handle(b"GET /cpu-name HTTP/1.1\r\n\r\n")
        assert response.body == CPU_NAME

    def test_load(self, reader, fake_sleep):
        response = create_router(ServerConfig(), reader).handle(b"GET /load HTTP/1.1\r\n\r\n")

        assert response.body == "40%"
        assert fake_sleep.calls == [1.0]

    def test_config_carries_policy_and_limit(self, reader):
        config = ServerConfig(error_responses=True, max_request_size=100)
        router = create_router(config, reader)

        assert router.error_responses is True
        assert router.parser.max_request_size == 100
