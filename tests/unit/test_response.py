"""
Unit tests for response building.
"""

import pytest

from hinfosvc.errors import AllocationFailure
from hinfosvc.http.response import (
    HTTPResponse,
    ResponseBuilder,
    bad_request,
    build_response,
    error,
    ok,
)
from hinfosvc.http.status_codes import HTTPStatus


def split_response(raw: bytes):
    """Read a built response back into (status, body)."""
    head, rest = raw.split(b"\r\n\r\n", 1)
    status_line, *header_lines = head.decode("ascii").split("\r\n")
    headers = dict(line.split(": ", 1) for line in header_lines)
    length = int(headers["Content-Length"])

    assert len(rest) == length
    return status_line.split(" ", 1)[1], rest[:length].decode("utf-8")


class TestFraming:
    """A built response reads back to the same status and body."""

    @pytest.mark.parametrize("status", ["200 OK", "400 Bad Request", HTTPStatus.SERVICE_UNAVAILABLE])
    @pytest.mark.parametrize("body", [
        "",
        "build-01",
        "AMD Ryzen™ 7 5800X – 8‑Core",
        "head\r\n\r\ntail",
        "x" * 5000,
    ])
    def test_status_and_body_recovered(self, status, body):
        assert split_response(build_response(status, body)) == (str(status), body)


class TestBuildResponse:
    """Exact wire format of responses."""

    def test_ok_with_body(self):
        assert build_response("200 OK", "myhost") == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Length: 6\r\n"
            b"Connection: close\r\n"
            b"\r\n"
            b"myhost"
        )

    def test_bad_request_empty_body(self):
        assert build_response("400 Bad Request", "") == (
            b"HTTP/1.1 400 Bad Request\r\n"
            b"Content-Length: 0\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_enum_and_literal_status_agree(self):
        assert build_response(HTTPStatus.OK, "37%") == build_response("200 OK", "37%")

    def test_content_length_counts_bytes(self):
        """Content-Length is the UTF-8 byte length, not the character count."""
        result = build_response(HTTPStatus.OK, "héllo")
        assert b"Content-Length: 6\r\n" in result
        assert result.endswith("héllo".encode("utf-8"))

    def test_only_framing_headers(self):
        """Exactly two headers are ever emitted."""
        head = build_response(HTTPStatus.OK, "x").split(b"\r\n\r\n", 1)[0]
        lines = head.split(b"\r\n")

        assert len(lines) == 3
        assert lines[1].startswith(b"Content-Length:")
        assert lines[2] == b"Connection: close"


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.PAYLOAD_TOO_LARGE).status_line == (
            "HTTP/1.1 413 Payload Too Large"
        )

    def test_status_code(self):
        assert HTTPResponse(status=HTTPStatus.REQUEST_TIMEOUT).status_code == 408
        assert HTTPResponse(status="400 Bad Request").status_code == 400

    def test_bytes_body(self):
        response = HTTPResponse(body=b"\x00\x01")
        assert response.content_length == 2
        assert response.to_bytes().endswith(b"\r\n\r\n\x00\x01")

    def test_memory_error_becomes_allocation_failure(self, monkeypatch):
        """Running out of memory while serialising is reported, not raised raw."""
        def explode(self):
            raise MemoryError("no room")

        monkeypatch.setattr(HTTPResponse, "body_bytes", property(explode))

        with pytest.raises(AllocationFailure):
            HTTPResponse(body="x").to_bytes()


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_defaults(self):
        response = ResponseBuilder().build()
        assert response.status == HTTPStatus.OK
        assert response.body_bytes == b""

    def test_chaining(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("build-01")
            .build())

        assert response.status == HTTPStatus.OK
        assert response.body == "build-01"

    def test_to_bytes(self):
        assert ResponseBuilder().text("a").to_bytes() == build_response(HTTPStatus.OK, "a")


class TestConvenienceFunctions:
    """Tests for response shortcuts."""

    def test_ok(self):
        response = ok("12%")
        assert response.status == HTTPStatus.OK
        assert response.body == "12%"

    def test_bad_request(self):
        response = bad_request()
        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.content_length == 0

    def test_error(self):
        response = error(HTTPStatus.SERVICE_UNAVAILABLE)
        assert response.to_bytes() == (
            b"HTTP/1.1 503 Service Unavailable\r\n"
            b"Content-Length: 0\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_str_is_status_line_form(self):
        assert str(HTTPStatus.OK) == "200 OK"
        assert str(HTTPStatus.BAD_REQUEST) == "400 Bad Request"

    def test_is_int(self):
        assert HTTPStatus.INTERNAL_SERVER_ERROR == 500

    def test_categories(self):
        assert HTTPStatus.OK.is_success
        assert not HTTPStatus.OK.is_error
        assert HTTPStatus.REQUEST_TIMEOUT.is_error
