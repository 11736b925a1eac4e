"""Tests for request header encoding and response header decoding."""

import logging

from transfer_engine.core.header_codec import (
    ResponseHead,
    decode_response_header,
    encode_request_header,
    parse_header_lines,
)


class TestEncodeRequestHeader:
    """Tests for encode_request_header."""

    def test_content_type_comes_first(self):
        lines = encode_request_header("application/json", {"X-A": "1", "X-B": "2"})

        assert lines == ["Content-Type:application/json", "X-A:1", "X-B:2"]

    def test_no_user_headers(self):
        assert encode_request_header("application/text") == ["Content-Type:application/text"]
        assert encode_request_header("application/text", {}) == ["Content-Type:application/text"]

    def test_values_are_not_altered(self):
        """Values go out verbatim, no trimming or quoting."""
        lines = encode_request_header("text/plain", {"Authorization": "Bearer a b"})

        assert lines[1] == "Authorization:Bearer a b"


class TestDecodeResponseHeader:
    """Tests for decode_response_header."""

    def test_basic_block(self):
        head = decode_response_header(
            b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\nX-Id: 7\r\n\r\n"
        )

        assert head == ResponseHead(
            http_version="HTTP/1.1",
            status=200,
            message="OK",
            headers={"Content-Type": "text/html", "X-Id": "7"},
        )

    def test_encoded_headers_survive_decoding(self):
        """Headers encoded for a request decode back to the same map."""
        original = {"X-Trace": "abc", "Accept": "*/*"}
        lines = encode_request_header("application/json", original)
        block = "HTTP/1.1 204 No Content\r\n" + "".join(f"{line}\r\n" for line in lines)

        head = decode_response_header(block.encode())

        assert head.headers == {"Content-Type": "application/json", **original}

    def test_message_with_spaces(self):
        head = decode_response_header(b"HTTP/1.1 503 Service Unavailable\r\n\r\n")

        assert head.status == 503
        assert head.message == "Service Unavailable"

    def test_status_without_reason(self):
        head = decode_response_header(b"HTTP/2 200\r\nA: b\r\n\r\n")

        assert head.http_version == "HTTP/2"
        assert head.status == 200
        assert head.message == ""
        assert head.headers == {"A": "b"}

    def test_garbage_status_line(self, caplog):
        """Unparseable status line leaves status 0 and headers are still read."""
        caplog.set_level(logging.DEBUG, logger="transfer_engine")

        head = decode_response_header(b"GARBAGE\r\nX-Seen: 1\r\n\r\n")

        assert head.status == 0
        assert head.headers == {"X-Seen": "1"}
        assert "Malformed status line" in caplog.text

    def test_non_numeric_status(self):
        head = decode_response_header(b"HTTP/1.1 abc Weird\r\nA: 1\r\n\r\n")

        assert head.http_version == "HTTP/1.1"
        assert head.status == 0
        assert head.headers == {"A": "1"}

    def test_missing_trailing_blank_line(self):
        head = decode_response_header(b"HTTP/1.1 404 Not Found\r\nA: 1")

        assert head.status == 404
        assert head.headers == {"A": "1"}

    def test_bare_newlines(self):
        head = decode_response_header(b"HTTP/1.1 200 OK\nA: 1\n\n")

        assert head.status == 200
        assert head.headers == {"A": "1"}

    def test_interim_blocks_are_skipped(self):
        data = (
            b"HTTP/1.1 100 Continue\r\n\r\n"
            b"HTTP/1.1 103 Early Hints\r\nLink: </a.css>\r\n\r\n"
            b"HTTP/1.1 201 Created\r\nLocation: /items/1\r\n\r\n"
        )

        head = decode_response_header(data)

        assert head.status == 201
        assert head.headers == {"Location": "/items/1"}

    def test_lone_interim_block(self):
        """A 1xx block with nothing after it is reported as is."""
        head = decode_response_header(b"HTTP/1.1 100 Continue\r\n\r\n")

        assert head.status == 100

    def test_lines_without_colon_are_skipped(self):
        head = decode_response_header(b"HTTP/1.1 200 OK\r\nnot a header\r\nA: 1\r\n\r\n")

        assert head.headers == {"A": "1"}

    def test_value_may_contain_colons(self):
        head = decode_response_header(b"HTTP/1.1 200 OK\r\nLocation: http://x:8080/a\r\n\r\n")

        assert head.headers["Location"] == "http://x:8080/a"

    def test_duplicate_header_last_wins(self):
        head = decode_response_header(b"HTTP/1.1 200 OK\r\nA: 1\r\nA: 2\r\n\r\n")

        assert head.headers == {"A": "2"}

    def test_empty_input(self):
        assert decode_response_header(b"") == ResponseHead()
        assert decode_response_header("") == ResponseHead()

    def test_accepts_str(self):
        assert decode_response_header("HTTP/1.0 302 Found\r\n\r\n").status == 302


class TestParseHeaderLines:
    """Tests for parse_header_lines (outgoing debug stream)."""

    def test_skips_request_line(self):
        data = b"GET /path HTTP/1.1\r\nHost: example.com\r\nX-A: 1\r\n\r\n"

        assert parse_header_lines(data) == {"Host": "example.com", "X-A": "1"}

    def test_stops_at_blank_line(self):
        data = b"POST / HTTP/1.1\r\nA: 1\r\n\r\nbody: not-a-header\r\n"

        assert parse_header_lines(data) == {"A": "1"}

    def test_keep_first_line(self):
        assert parse_header_lines("A: 1\r\nB: 2", skip_first=False) == {"A": "1", "B": "2"}
