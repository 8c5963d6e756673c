"""Method, URL, and body extraction from raw proxy requests.

A proxy sees requests as raw text: a request line (``GET http://host/ HTTP/1.1``),
header lines, a blank line, then the body. :class:`RequestParser` pulls the
pieces the cache key needs out of that text. It is injected into
:func:`~proxystore.storage.keys.create_cache_key` and the cache adapters so
that a proxy with its own parsing rules can supply a replacement.

Raw requests may arrive as ``str`` or ``bytes``. Bytes are decoded as
latin-1, which maps every byte to exactly one code point, so nothing in the
body is lost or altered before hashing.
"""

from __future__ import annotations

from typing import Union

RawRequest = Union[str, bytes]

_SEPARATORS = ("\r\n\r\n", "\n\n")


def _as_text(raw_request: RawRequest) -> str:
    if isinstance(raw_request, bytes):
        return raw_request.decode("latin-1")
    return raw_request


class RequestParser:
    """Extracts the request line fields and the body from a raw proxy request."""

    def extract_method(self, raw_request: RawRequest) -> str:
        """Return the HTTP method from the request line, or ``""`` if there is none."""
        parts = self._request_line(raw_request).split()
        return parts[0] if parts else ""

    def extract_url(self, raw_request: RawRequest) -> str:
        """Return the request target from the request line, or ``""`` if there is none."""
        parts = self._request_line(raw_request).split()
        return parts[1] if len(parts) > 1 else ""

    def extract_body(self, raw_request: RawRequest) -> str:
        """Return everything after the first blank line.

        Both ``CRLF CRLF`` and bare ``LF LF`` separators are recognised;
        whichever occurs first wins. A request without a separator has an
        empty body.
        """
        text = _as_text(raw_request)
        found = [(text.find(sep), sep) for sep in _SEPARATORS if sep in text]
        if not found:
            return ""
        index, sep = min(found)
        return text[index + len(sep):]

    def _request_line(self, raw_request: RawRequest) -> str:
        text = _as_text(raw_request).lstrip("\r\n")
        return text.split("\n", 1)[0].rstrip("\r")
