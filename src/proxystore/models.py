"""Canonical Pydantic models shared across all proxystore modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`StorageBackend`, :class:`CacheConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

**Storage models** -- the record written to a cache pool:
    :class:`CacheEntry`. Pools receive the plain ``dict`` produced by
    :meth:`CacheEntry.model_dump`, so the stored schema is
    ``{url, method, key, response}`` regardless of the backend.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration Models ---


class StorageBackend(str, enum.Enum):
    """Cache backends that :func:`~proxystore.storage.factory.create_backend` can build."""

    FILESYSTEM = "filesystem"
    DISKCACHE = "diskcache"


class CacheConfig(BaseModel):
    """Cache storage settings stored in :class:`GlobalConfig`.

    ``path`` is split by the factory into a storage root (its parent) and a
    namespace (its leaf name). When unset, the default under the XDG cache
    directory is used (see :func:`~proxystore.config.resolve_config`).
    """

    path: Optional[str] = Field(
        default=None, description="Cache path; parent is the root, leaf is the namespace"
    )
    backend: StorageBackend = Field(
        default=StorageBackend.FILESYSTEM, description="Storage backend: filesystem, diskcache"
    )
    page_size: int = Field(
        default=20, ge=1, description="Default items per page for listings"
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/proxystore/config.json``.

    Loaded and saved by :func:`~proxystore.config.load_global_config` and
    :func:`~proxystore.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~proxystore.config.resolve_config`.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Storage Models ---


class CacheEntry(BaseModel):
    """A single recorded response and the request metadata that produced it.

    ``key`` duplicates the pool key so that an entry read back on its own
    still says where it lives. ``response`` is the raw response body:
    bytes, or text when the proxy recorded it as a string. Page listings
    strip it from the stored dict unless asked to keep it.

    Example::

        CacheEntry(
            url="https://example.com/",
            method="GET",
            key="0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33",
            response=b"HTTP/1.1 200 OK\\r\\n\\r\\nhello",
        )
    """

    model_config = ConfigDict(frozen=True)

    url: str
    method: str
    key: str
    response: Optional[bytes | str] = None
