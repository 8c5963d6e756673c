"""Tests for cache key derivation."""

from __future__ import annotations

import hashlib
import re

import pytest

from proxystore.request_parser import RequestParser
from proxystore.storage import create_cache_key


def _request(method: str, body: str = "", headers: str = "Host: example.com\r\n") -> str:
    return f"{method} http://example.com/ HTTP/1.1\r\n{headers}\r\n{body}"


class TestKeyFormat:
    def test_key_is_40_char_hex(self) -> None:
        key = create_cache_key(_request("GET"), "http://example.com/")
        assert re.fullmatch(r"[0-9a-f]{40}", key)

    def test_known_get_digest(self) -> None:
        key = create_cache_key(_request("GET"), "http://example.com/")
        assert key == "628735d3a16b67b1dd5fbfbd10a15f2c28362bbd"

    def test_known_post_digest(self) -> None:
        raw = "POST http://example.com/form HTTP/1.1\r\nContent-Length: 7\r\n\r\na=1&b=2"
        key = create_cache_key(raw, "http://example.com/form")
        assert key == "34dd51e088fe06b9a50446fe787a06286d7e6d93"

    def test_matches_sha1_of_concatenation(self) -> None:
        raw = _request("POST", body="payload")
        expected = hashlib.sha1(b"POSTpayloadhttp://example.com/").hexdigest()
        assert create_cache_key(raw, "http://example.com/") == expected


class TestBodyPolicy:
    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "HEAD"])
    def test_non_post_ignores_body(self, method: str) -> None:
        url = "http://example.com/"
        key1 = create_cache_key(_request(method, body="one"), url)
        key2 = create_cache_key(_request(method, body="two"), url)
        assert key1 == key2

    def test_post_body_changes_key(self) -> None:
        url = "http://example.com/"
        key1 = create_cache_key(_request("POST", body="one"), url)
        key2 = create_cache_key(_request("POST", body="two"), url)
        assert key1 != key2

    def test_lowercase_post_is_not_post(self) -> None:
        url = "http://example.com/"
        key1 = create_cache_key(_request("post", body="one"), url)
        key2 = create_cache_key(_request("post", body="two"), url)
        assert key1 == key2

    def test_headers_do_not_affect_key(self) -> None:
        url = "http://example.com/"
        key1 = create_cache_key(_request("POST", "b", headers="User-Agent: a\r\n"), url)
        key2 = create_cache_key(_request("POST", "b", headers="User-Agent: z\r\n"), url)
        assert key1 == key2


class TestEffectiveUrl:
    def test_effective_url_used_not_request_line(self) -> None:
        # A tunnelled HTTPS request rewritten to a plain GET for recording
        rewritten = "GET http://secure.example.com/ HTTP/1.1\r\n\r\n"
        key = create_cache_key(rewritten, "https://secure.example.com/")
        assert key == "896e0368b538cfef5ef3afa433946777d48a3180"

    def test_different_urls_differ(self) -> None:
        raw = _request("GET")
        assert create_cache_key(raw, "http://a.example/") != create_cache_key(raw, "http://b.example/")


class TestDeterminism:
    def test_repeat_calls_agree(self) -> None:
        raw = _request("POST", body="x=1")
        keys = {create_cache_key(raw, "http://example.com/") for _ in range(5)}
        assert len(keys) == 1

    def test_bytes_and_text_agree_for_ascii(self) -> None:
        raw = _request("POST", body="x=1")
        assert create_cache_key(raw, "http://example.com/") == create_cache_key(
            raw.encode("ascii"), "http://example.com/"
        )

    def test_binary_post_body_hashed_bytewise(self) -> None:
        raw = b"POST / HTTP/1.1\r\n\r\n\xff\xfe"
        expected = hashlib.sha1(b"POST\xff\xfehttp://example.com/").hexdigest()
        assert create_cache_key(raw, "http://example.com/") == expected


class TestInjectedParser:
    def test_custom_parser_is_used(self) -> None:
        class FixedParser(RequestParser):
            def extract_method(self, raw_request):  # noqa: ANN001, ANN201
                return "POST"

            def extract_body(self, raw_request):  # noqa: ANN001, ANN201
                return "body"

        key = create_cache_key("anything", "u", parser=FixedParser())
        assert key == hashlib.sha1(b"POSTbodyu").hexdigest()

    def test_parser_returning_bytes(self) -> None:
        class BytesBodyParser(RequestParser):
            def extract_body(self, raw_request):  # noqa: ANN001, ANN201
                return b"a=1"

        raw = b"POST http://e/ HTTP/1.1\r\n\r\na=1"
        key = create_cache_key(raw, "http://e/", parser=BytesBodyParser())
        assert key == hashlib.sha1(b"POSTa=1http://e/").hexdigest()
        assert key == create_cache_key(raw, "http://e/")

    def test_parser_returning_bytes_method(self) -> None:
        class BytesParser(RequestParser):
            def extract_method(self, raw_request):  # noqa: ANN001, ANN201
                return b"POST"

            def extract_body(self, raw_request):  # noqa: ANN001, ANN201
                return b"\xff"

        key = create_cache_key(b"ignored", "u", parser=BytesParser())
        assert key == hashlib.sha1(b"POST\xffu").hexdigest()
