"""Cache adapters: enumeration, pagination, and entry encoding over a pool.

A :class:`CachePool` only knows how to get and set values by key. The
adapters add what a recording proxy and its admin tooling need on top of
that:

* stable enumeration of stored keys and page-by-page access to them,
* single-item read and delete,
* the encode/decode policy that turns a response body plus request
  metadata into a stored :class:`~proxystore.models.CacheEntry` and back,
* cache key creation (see :mod:`proxystore.storage.keys`).

:class:`CacheAdapter` holds the backend-independent behaviour. Concrete
adapters supply :meth:`~CacheAdapter.list_cache_keys` and, when they store
structured entries, override the two ``convert_*`` methods.

Adapters are bound to a pool with :meth:`~CacheAdapter.set_cache_pool`
after construction; any pool-backed call made before that raises
:class:`~proxystore.exceptions.InitError`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from proxystore.exceptions import EntryValidationError, InitError, InvalidUsageError
from proxystore.models import CacheEntry
from proxystore.request_parser import RawRequest, RequestParser
from proxystore.storage.keys import create_cache_key
from proxystore.storage.pool import CachePool, LocalFileStore

logger = logging.getLogger(__name__)

REQUIRED_METADATA = ("url", "method", "key")


class CacheAdapter(ABC):
    """Backend-independent cache operations.

    The default ``convert_*`` methods pass values through unchanged, which
    suits only pools that store raw response bodies.

    Args:
        parser: Request parser used by :meth:`create_cache_key`. Defaults
            to :class:`~proxystore.request_parser.RequestParser`.
    """

    def __init__(self, parser: Optional[RequestParser] = None) -> None:
        self._parser = parser or RequestParser()
        self._cache_pool: Optional[CachePool] = None

    # ------------------------------------------------------------------ #
    # Backend hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def list_cache_keys(self) -> list[str]:
        """Return every stored key, in an order that is stable across calls."""

    def count_cache_items(self) -> int:
        """Return the number of stored entries."""
        return len(self.list_cache_keys())

    def convert_response_to_cache(self, response: Any, metadata: Mapping[str, Any]) -> Any:
        """Return the value to store for *response*. Passes it through unchanged."""
        return response

    def convert_cache_to_response(self, cached_data: Any) -> Any:
        """Return the response held in *cached_data*. Passes it through unchanged."""
        return cached_data

    # ------------------------------------------------------------------ #
    # Pagination
    # ------------------------------------------------------------------ #

    def get_page_of_cache_keys(self, page_no: int, items_per_page: int) -> list[str]:
        """Return one page of keys from :meth:`list_cache_keys`.

        Page numbers start at 1. The last page may be short, and any page
        past the end is empty.

        Raises:
            InvalidUsageError: If *page_no* or *items_per_page* is below 1.
        """
        if page_no < 1:
            raise InvalidUsageError(f"Page number must be 1 or greater, got {page_no}")
        if items_per_page < 1:
            raise InvalidUsageError(
                f"Items per page must be 1 or greater, got {items_per_page}"
            )
        keys = self.list_cache_keys()
        start = (page_no - 1) * items_per_page
        return list(keys[start:start + items_per_page])

    def get_page_of_cache_items(
        self,
        page_no: int,
        items_per_page: int,
        include_response: bool = False,
    ) -> list[Any]:
        """Return the stored entries for one page of keys.

        Entries are bulk-read from the pool in page order. Keys that no
        longer resolve (deleted since listing, or stored empty) are left out
        of the result. Unless *include_response* is set, the ``response``
        field is removed from each entry.
        """
        keys = self.get_page_of_cache_keys(page_no, items_per_page)
        found = self._get_cache_pool().get_many(keys)

        items: list[Any] = []
        for key in keys:
            item = found.get(key)
            if not item:
                continue
            if not include_response and isinstance(item, Mapping):
                item = {k: v for k, v in item.items() if k != "response"}
            items.append(item)

        logger.debug(
            "Read page %d (%d per page): %d of %d keys resolved",
            page_no, items_per_page, len(items), len(keys),
        )
        return items

    # ------------------------------------------------------------------ #
    # Single items
    # ------------------------------------------------------------------ #

    def read_cache_item(self, key: str) -> Any:
        """Return whatever the pool holds for *key*.

        A missing key comes back as ``None``. A key stored with an empty
        value returns that value, so callers should treat any empty or
        ``None`` result as a miss.
        """
        return self._get_cache_pool().get(key)

    def expire_cache_item(self, key: str) -> None:
        """Delete *key* from the pool. Unknown keys are ignored."""
        self._get_cache_pool().delete(key)

    def store_response(self, response: Any, metadata: Mapping[str, Any]) -> Any:
        """Encode *response* and write it to the pool under ``metadata["key"]``.

        Returns:
            The value written to the pool.
        """
        cached = self.convert_response_to_cache(response, metadata)
        if "key" not in metadata:
            raise EntryValidationError("Expecting a 'key' metadata item when saving")
        self._get_cache_pool().set(metadata["key"], cached)
        return cached

    def create_cache_key(self, raw_request: RawRequest, effective_url: str) -> str:
        """Return the cache key for a raw request.

        The HTTPS ``CONNECT`` to ``GET`` rewrite means the request line may
        not carry the URL the client wanted; *effective_url* is that
        original URL.
        """
        return create_cache_key(raw_request, effective_url, self._parser)

    # ------------------------------------------------------------------ #
    # Pool binding
    # ------------------------------------------------------------------ #

    def set_cache_pool(self, cache_pool: CachePool) -> CacheAdapter:
        """Bind the adapter to *cache_pool* and return the adapter."""
        self._cache_pool = cache_pool
        return self

    def _get_cache_pool(self) -> CachePool:
        if self._cache_pool is None:
            raise InitError("Cache pool not set on this cache adapter")
        return self._cache_pool


# ------------------------------------------------------------------ #
# Entry encoding shared by the structured-entry adapters
# ------------------------------------------------------------------ #


def encode_entry(response: Any, metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Build the stored record for *response*.

    Raises:
        EntryValidationError: If ``url``, ``method`` or ``key`` is missing
            from *metadata*.
    """
    for name in REQUIRED_METADATA:
        if metadata.get(name) is None:
            raise EntryValidationError(f"Expecting a '{name}' metadata item when saving")

    entry = CacheEntry(
        url=metadata["url"],
        method=metadata["method"],
        key=metadata["key"],
        response=response,
    )
    return entry.model_dump()


def decode_entry(cached_data: Any) -> Any:
    """Return the response body from a stored record.

    Raises:
        EntryValidationError: If the record has no ``response``.
    """
    if not isinstance(cached_data, Mapping) or cached_data.get("response") is None:
        raise EntryValidationError("This cache entry does not have a 'response' key")
    return cached_data["response"]


class FilesystemAdapter(CacheAdapter):
    """Adapter for a :class:`~proxystore.storage.pool.FilesystemCachePool`.

    Keys are enumerated by listing the pool's namespace directory in the
    file store; each file name is a key.

    Args:
        filesystem: The file store the pool writes into.
        folder: The pool's namespace directory.
        parser: Optional request parser for :meth:`create_cache_key`.
    """

    def __init__(
        self,
        filesystem: LocalFileStore,
        folder: str = "cache",
        parser: Optional[RequestParser] = None,
    ) -> None:
        super().__init__(parser)
        self._filesystem = filesystem
        self._folder = folder

    def list_cache_keys(self) -> list[str]:
        self._get_cache_pool()  # unbound adapters fail here too
        return [info.basename for info in self._filesystem.list_contents(self._folder)]

    def convert_response_to_cache(self, response: Any, metadata: Mapping[str, Any]) -> dict[str, Any]:
        # No serialisation here, the pool does that.
        return encode_entry(response, metadata)

    def convert_cache_to_response(self, cached_data: Any) -> Any:
        return decode_entry(cached_data)


class DiskCacheAdapter(CacheAdapter):
    """Adapter for a :class:`~proxystore.storage.pool.DiskCachePool`.

    Stores the same entry records as :class:`FilesystemAdapter`; keys are
    enumerated from the ``diskcache`` index in sorted order.
    """

    def list_cache_keys(self) -> list[str]:
        return sorted(self._get_cache_pool().list_keys())

    def convert_response_to_cache(self, response: Any, metadata: Mapping[str, Any]) -> dict[str, Any]:
        return encode_entry(response, metadata)

    def convert_cache_to_response(self, cached_data: Any) -> Any:
        return decode_entry(cached_data)
