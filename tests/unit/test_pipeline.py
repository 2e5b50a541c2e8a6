"""
Unit tests for the response pipeline and its decorators.
"""

from datetime import datetime, timezone

import pytest

from httpcap.http.headers import Header
from httpcap.http.request import HTTPRequest
from httpcap.http.response import HTTPResponse
from httpcap.http.status_codes import HTTPStatus
from httpcap.pipeline import (
    ConnectionControlDecorator,
    ContentDecorator,
    DateDecorator,
    ResponseDecorator,
    ResponsePipeline,
    ServerDecorator,
    standard_pipeline,
)


def fixed_clock() -> datetime:
    return datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def request_11() -> HTTPRequest:
    return HTTPRequest("GET", "/", "HTTP/1.1", [Header("Host", "x")])


class RecordingDecorator(ResponseDecorator):
    def __init__(self, label, calls):
        self.label = label
        self.calls = calls

    def decorate(self, response, request):
        self.calls.append(self.label)


class TestResponsePipeline:
    """Tests for ResponsePipeline."""

    def test_runs_in_registration_order(self):
        calls = []
        pipeline = ResponsePipeline([
            RecordingDecorator("first", calls),
            RecordingDecorator("second", calls),
            RecordingDecorator("third", calls),
        ])

        pipeline.process(HTTPResponse())

        assert calls == ["first", "second", "third"]

    def test_process_returns_response(self):
        response = HTTPResponse()
        assert ResponsePipeline().process(response) is response

    def test_standard_pipeline_order(self):
        names = [d.name for d in standard_pipeline()]
        assert names == [
            "DateDecorator",
            "ServerDecorator",
            "ContentDecorator",
            "ConnectionControlDecorator",
        ]

    def test_standard_pipeline_headers(self, request_11: HTTPRequest):
        response = standard_pipeline().process(HTTPResponse(), request_11)

        assert response.status == HTTPStatus.OK
        assert response.has_header("Date")
        assert response.get_header("Server") == "HttpCap/1.1"
        assert response.get_header("Content-Length") == "0"
        assert response.get_header("Connection") == "keep-alive"


class TestDateDecorator:

    def test_adds_date(self):
        response = HTTPResponse()
        DateDecorator(clock=fixed_clock).decorate(response, None)
        assert response.get_header("Date") == "Thu, 01 Jan 2026 12:00:00 GMT"

    def test_keeps_existing_date(self):
        response = HTTPResponse().set_header("Date", "earlier")
        DateDecorator(clock=fixed_clock).decorate(response, None)
        assert response.get_header("Date") == "earlier"

    def test_skips_informational(self):
        response = HTTPResponse(status=HTTPStatus.CONTINUE)
        DateDecorator(clock=fixed_clock).decorate(response, None)
        assert not response.has_header("Date")


class TestServerDecorator:

    def test_adds_server(self):
        response = HTTPResponse()
        ServerDecorator("Test/2.0").decorate(response, None)
        assert response.get_header("Server") == "Test/2.0"

    def test_keeps_handler_server(self):
        response = HTTPResponse().set_header("Server", "handler")
        ServerDecorator().decorate(response, None)
        assert response.get_header("Server") == "handler"


class TestContentDecorator:

    def test_empty_body_gets_zero_length(self, request_11: HTTPRequest):
        response = HTTPResponse()
        ContentDecorator().decorate(response, request_11)
        assert response.get_header("Content-Length") == "0"

    def test_body_length(self, request_11: HTTPRequest):
        response = HTTPResponse(body=b"hello")
        ContentDecorator().decorate(response, request_11)
        assert response.get_header("Content-Length") == "5"

    def test_handler_framing_replaced(self, request_11: HTTPRequest):
        response = HTTPResponse(body=b"hello").set_header("Content-Length", "99")
        ContentDecorator().decorate(response, request_11)
        assert response.get_header("Content-Length") == "5"

    @pytest.mark.parametrize("status", [
        HTTPStatus.NO_CONTENT,
        HTTPStatus.RESET_CONTENT,
        HTTPStatus.NOT_MODIFIED,
    ])
    def test_bodiless_statuses(self, status, request_11: HTTPRequest):
        response = HTTPResponse(status=status)
        ContentDecorator().decorate(response, request_11)
        assert not response.has_header("Content-Length")

    def test_chunked_on_http_11(self, request_11: HTTPRequest):
        response = HTTPResponse(body=b"hello", chunked=True)
        ContentDecorator().decorate(response, request_11)

        assert response.get_header("Transfer-Encoding") == "chunked"
        assert not response.has_header("Content-Length")

    def test_chunked_falls_back_on_http_10(self):
        request = HTTPRequest("GET", "/", "HTTP/1.0")
        response = HTTPResponse(body=b"hello", chunked=True)
        ContentDecorator().decorate(response, request)

        assert not response.has_header("Transfer-Encoding")
        assert response.get_header("Content-Length") == "5"


class TestConnectionControlDecorator:

    def test_keep_alive_for_http_11(self, request_11: HTTPRequest):
        response = HTTPResponse()
        ConnectionControlDecorator().decorate(response, request_11)
        assert response.get_header("Connection") == "keep-alive"

    def test_close_when_requested(self):
        request = HTTPRequest("GET", "/", "HTTP/1.1", [Header("Connection", "close")])
        response = HTTPResponse()
        ConnectionControlDecorator().decorate(response, request)
        assert response.get_header("Connection") == "close"

    def test_close_for_http_10(self):
        response = HTTPResponse()
        ConnectionControlDecorator().decorate(response, HTTPRequest("GET", "/", "HTTP/1.0"))
        assert response.get_header("Connection") == "close"

    def test_http_10_keep_alive(self):
        request = HTTPRequest("GET", "/", "HTTP/1.0", [Header("Connection", "keep-alive")])
        response = HTTPResponse()
        ConnectionControlDecorator().decorate(response, request)
        assert response.get_header("Connection") == "keep-alive"

    def test_close_without_request(self):
        response = HTTPResponse()
        ConnectionControlDecorator().decorate(response, None)
        assert response.get_header("Connection") == "close"

    @pytest.mark.parametrize("status", [400, 408, 411, 413, 414, 501, 503])
    def test_closing_statuses(self, status, request_11: HTTPRequest):
        response = HTTPResponse(status=HTTPStatus(status))
        ConnectionControlDecorator().decorate(response, request_11)
        assert response.get_header("Connection") == "close"

    def test_handler_close_kept(self, request_11: HTTPRequest):
        response = HTTPResponse().set_header("Connection", "close")
        ConnectionControlDecorator().decorate(response, request_11)
        assert response.get_header("Connection") == "close"

    def test_status_never_changed(self, request_11: HTTPRequest):
        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        standard_pipeline().process(response, request_11)
        assert response.status == HTTPStatus.NOT_FOUND
