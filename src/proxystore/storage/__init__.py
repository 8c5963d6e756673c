"""Cache storage for the recording proxy.

This package provides the pieces a proxy needs to record and replay
responses:

* :func:`create_cache_key` -- the fingerprint deciding whether two requests
  share a cache slot.
* :class:`CachePool` implementations -- :class:`FilesystemCachePool` (one
  file per key) and :class:`DiskCachePool` (:mod:`diskcache`).
* :class:`CacheAdapter` implementations -- enumeration, pagination, and the
  entry encode/decode policy on top of a pool.
* :class:`FilecacheFactory` / :class:`DiskcacheFactory` -- build a pool and
  a bound adapter from a single cache path.
"""

from proxystore.storage.adapter import (
    CacheAdapter,
    DiskCacheAdapter,
    FilesystemAdapter,
)
from proxystore.storage.factory import (
    CacheBackend,
    DiskcacheFactory,
    FilecacheFactory,
    create_backend,
    create_factory,
)
from proxystore.storage.keys import create_cache_key
from proxystore.storage.pool import (
    CachePool,
    DiskCachePool,
    FilesystemCachePool,
    LocalFileStore,
)

__all__ = [
    "CacheAdapter",
    "CacheBackend",
    "CachePool",
    "DiskCacheAdapter",
    "DiskCachePool",
    "DiskcacheFactory",
    "FilecacheFactory",
    "FilesystemAdapter",
    "FilesystemCachePool",
    "LocalFileStore",
    "create_backend",
    "create_cache_key",
    "create_factory",
]
