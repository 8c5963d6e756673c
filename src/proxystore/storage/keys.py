"""Cache key derivation for proxied requests.

Two requests hit the same cache slot exactly when they produce the same
key. The key is the SHA-1 hex digest of ``method + body + effective_url``
where ``body`` is the request body for ``POST`` requests and the empty
string for every other method (``PUT`` and ``PATCH`` bodies included).
Keep the concatenation order and the POST-only rule unchanged: caches
written by other implementations of the same proxy must stay readable.

The *effective* URL is the one the client asked for before any rewriting.
A tunnelled HTTPS ``CONNECT`` that the proxy turns into a plain ``GET`` so it
can be recorded is keyed on the original ``https://`` URL.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from proxystore.request_parser import RawRequest, RequestParser

_default_parser = RequestParser()


def create_cache_key(
    raw_request: RawRequest,
    effective_url: str,
    parser: Optional[RequestParser] = None,
) -> str:
    """Return the 40-character hex cache key for a proxied request.

    Args:
        raw_request: The raw request text or bytes as seen by the proxy.
        effective_url: The URL before any protocol rewriting.
        parser: Extracts the method and body, as text or bytes. Defaults to
            :class:`~proxystore.request_parser.RequestParser`.

    Returns:
        Lowercase hex SHA-1 digest of ``method + body + effective_url``.
    """
    parser = parser or _default_parser
    method = parser.extract_method(raw_request)
    is_post = method in ("POST", b"POST")
    body = parser.extract_body(raw_request) if is_post else ""
    # latin-1 turns byte-derived text back into the exact bytes it came from
    encoding = "latin-1" if isinstance(raw_request, bytes) else "utf-8"
    data = _as_bytes(method, encoding) + _as_bytes(body, encoding) + effective_url.encode("utf-8")
    return hashlib.sha1(data).hexdigest()


def _as_bytes(value: str | bytes, encoding: str) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode(encoding)
