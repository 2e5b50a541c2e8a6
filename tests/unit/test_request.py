"""
Unit tests for HTTP request parsing and the request model.
"""

import pytest

from httpcap.errors import ProtocolViolation
from httpcap.http.headers import Header
from httpcap.http.parser import RequestParser
from httpcap.http.request import HTTPRequest, RequestEntity


def parse_one(raw: bytes) -> HTTPRequest:
    parser = RequestParser(("127.0.0.1", 12345))
    parser.feed(raw)
    request = parser.next_request()
    assert request is not None
    return request


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        request = parse_one(sample_get_request)

        assert request.method == "GET"
        assert request.target == "/api/users?page=1&limit=10"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.request_line == "GET /api/users?page=1&limit=10 HTTP/1.1"

    def test_headers_keep_order_and_case(self, sample_get_request: bytes):
        request = parse_one(sample_get_request)

        assert [h.name for h in request.headers] == ["Host", "User-Agent", "Accept"]
        assert request.get_first_header("user-agent").value == "pytest"

    def test_duplicate_headers_preserved(self):
        request = parse_one(
            b"GET / HTTP/1.1\r\nX-A: 1\r\nX-A: 2\r\n\r\n"
        )
        assert [h.value for h in request.get_headers("x-a")] == ["1", "2"]

    def test_bodiless_request_has_no_entity(self, sample_get_request: bytes):
        request = parse_one(sample_get_request)

        assert request.entity is None
        assert request.has_entity is False

    def test_post_with_body(self, sample_post_request: bytes):
        request = parse_one(sample_post_request)

        assert request.has_entity
        assert request.entity.content == b"hello"
        assert request.entity.content_type == "text/plain"
        assert request.entity.text() == "hello"

    def test_zero_content_length_still_has_entity(self):
        request = parse_one(b"POST / HTTP/1.1\r\nContent-Length: 0\r\n\r\n")

        assert request.has_entity
        assert request.entity.content == b""

    def test_chunked_body(self):
        request = parse_one(
            b"POST /up HTTP/1.1\r\n"
            b"Transfer-Encoding: chunked\r\n"
            b"\r\n"
            b"3\r\nhel\r\n2\r\nlo\r\n0\r\n\r\n"
        )

        assert request.entity.chunked is True
        assert request.entity.content == b"hello"

    def test_request_split_across_feeds(self, sample_post_request: bytes):
        parser = RequestParser()
        for i in range(0, len(sample_post_request), 7):
            assert parser.next_request() is None
            parser.feed(sample_post_request[i:i + 7])

        request = parser.next_request()
        assert request.target == "/submit"
        assert request.entity.content == b"hello"

    def test_in_message_tracks_partial_request(self):
        parser = RequestParser()
        assert parser.in_message is False

        parser.feed(b"GET / HTTP/1.1\r\nHo")
        assert parser.in_message is True

        parser.feed(b"st: x\r\n\r\n")
        assert parser.in_message is False
        assert parser.next_request() is not None

    def test_pipelined_requests_in_order(self):
        parser = RequestParser()
        parser.feed(
            b"GET /one HTTP/1.1\r\nHost: x\r\n\r\n"
            b"GET /two HTTP/1.1\r\nHost: x\r\n\r\n"
        )

        assert parser.next_request().target == "/one"
        assert parser.next_request().target == "/two"
        assert parser.next_request() is None

    def test_http_10(self):
        request = parse_one(b"GET / HTTP/1.0\r\n\r\n")

        assert request.version == "HTTP/1.0"
        assert request.protocol_version == (1, 0)

    def test_malformed_request(self):
        parser = RequestParser()
        parser.feed(b"GET / HTTP/1.1\r\nContent-Length: abc\r\n\r\n")

        with pytest.raises(ProtocolViolation) as exc_info:
            parser.next_request()

        assert exc_info.value.status_code == 400

    def test_unknown_method(self):
        parser = RequestParser()
        parser.feed(b"XYZZY / HTTP/1.1\r\nHost: x\r\n\r\n")

        with pytest.raises(ProtocolViolation) as exc_info:
            parser.next_request()

        assert exc_info.value.status_code == 501

    def test_error_after_good_request_is_deferred(self):
        parser = RequestParser()
        parser.feed(
            b"GET /ok HTTP/1.1\r\nHost: x\r\n\r\n"
            b"GET / HTTP/1.1\r\nContent-Length: abc\r\n\r\n"
        )

        assert parser.next_request().target == "/ok"
        with pytest.raises(ProtocolViolation):
            parser.next_request()

    def test_expect_continue(self):
        parser = RequestParser()
        parser.feed(
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 5\r\n"
            b"Expect: 100-continue\r\n"
            b"\r\n"
        )

        assert parser.next_request() is None
        assert parser.take_continue() is True
        assert parser.take_continue() is False

        parser.feed(b"hello")
        assert parser.next_request().entity.content == b"hello"

    def test_upgrade_request(self):
        parser = RequestParser()
        parser.feed(
            b"GET /chat HTTP/1.1\r\n"
            b"Host: x\r\n"
            b"Connection: Upgrade\r\n"
            b"Upgrade: websocket\r\n"
            b"\r\n"
        )

        assert parser.upgraded is True
        assert parser.next_request().target == "/chat"


class TestHTTPRequest:
    """Tests for the HTTPRequest model."""

    def test_keep_alive_defaults(self):
        assert HTTPRequest("GET", "/", "HTTP/1.1").is_keep_alive is True
        assert HTTPRequest("GET", "/", "HTTP/1.0").is_keep_alive is False

    def test_connection_header_overrides(self):
        close = HTTPRequest("GET", "/", "HTTP/1.1", [Header("Connection", "close")])
        keep = HTTPRequest("GET", "/", "HTTP/1.0", [Header("Connection", "Keep-Alive")])

        assert close.is_keep_alive is False
        assert keep.is_keep_alive is True

    def test_expects_continue_needs_entity(self):
        headers = [Header("Expect", "100-continue")]

        assert HTTPRequest("GET", "/", headers=headers).expects_continue is False
        assert HTTPRequest(
            "POST", "/", headers=headers, entity=RequestEntity()
        ).expects_continue is True

    def test_entity_charset_default(self):
        entity = RequestEntity(content="café".encode("latin-1"))

        assert entity.charset == "iso-8859-1"
        assert entity.text() == "café"

    def test_entity_charset_from_content_type(self):
        entity = RequestEntity(
            content="café".encode("utf-8"),
            content_type="text/plain; charset=UTF-8",
        )

        assert entity.charset == "UTF-8"
        assert entity.text() == "café"

    def test_entity_unknown_charset_falls_back(self):
        entity = RequestEntity(content=b"abc", content_type="text/plain; charset=bogus")
        assert entity.text() == "abc"

    @pytest.mark.parametrize("charset", ["idna", "undefined"])
    def test_entity_undecodable_charset_falls_back(self, charset):
        entity = RequestEntity(content=b"hello", content_type=f"text/plain; charset={charset}")
        assert entity.text() == "hello"
