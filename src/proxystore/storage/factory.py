"""Factories that build a cache pool and a bound adapter from a path.

The proxy and the admin CLI never construct storage objects themselves;
they hand a cache path to a factory and take back a
:class:`CacheBackend` pair. The path's parent directory is the storage
root and its leaf name is the namespace inside that root, so
``/var/cache/proxy/storage`` stores entries under ``/var/cache/proxy``
in a ``storage`` directory.

Factories are two-phase: the constructor only records the path, and
:meth:`FilecacheFactory.init` builds everything. The accessors raise
:class:`~proxystore.exceptions.InitError` until ``init()`` has run.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from proxystore.exceptions import InitError
from proxystore.models import CacheConfig, StorageBackend
from proxystore.request_parser import RequestParser
from proxystore.storage.adapter import CacheAdapter, DiskCacheAdapter, FilesystemAdapter
from proxystore.storage.pool import (
    CachePool,
    DiskCachePool,
    FilesystemCachePool,
    LocalFileStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheBackend:
    """A cache pool and the adapter bound to it."""

    pool: CachePool
    adapter: CacheAdapter


class FilecacheFactory:
    """Builds a :class:`FilesystemCachePool` and a bound :class:`FilesystemAdapter`.

    Args:
        cache_path: Storage root plus namespace, e.g. ``/tmp/proxy/storage``.
        parser: Request parser handed to the adapter.

    Example::

        factory = FilecacheFactory("/tmp/proxy/storage")
        backend = factory.init()
        backend.pool.set(key, entry)
        factory.get_cache_adapter().count_cache_items()
    """

    def __init__(self, cache_path: str | Path, parser: Optional[RequestParser] = None) -> None:
        self._cache_path = str(cache_path)
        self._parser = parser
        self._backend: Optional[CacheBackend] = None

    @property
    def cache_path(self) -> str:
        return self._cache_path

    def init(self) -> CacheBackend:
        """Build the file store, the pool, and the bound adapter.

        Raises:
            InitError: If the path has no namespace component (``""`` or
                ``"/"``), or if :meth:`init` has already run.
        """
        self._check_not_initialised()
        base_dir = self._get_dirname(self._cache_path)
        leaf_dir = self._get_basename(self._cache_path)
        if leaf_dir in ("", ".", ".."):
            raise InitError(f"Cache path '{self._cache_path}' has no namespace directory")

        filesystem = LocalFileStore(base_dir)
        pool = FilesystemCachePool(filesystem, leaf_dir)
        adapter = FilesystemAdapter(filesystem, leaf_dir, self._parser)
        adapter.set_cache_pool(pool)

        self._backend = CacheBackend(pool=pool, adapter=adapter)
        logger.info("Filesystem cache ready at %s (namespace '%s')", base_dir, leaf_dir)
        return self._backend

    def get_cache_pool(self) -> CachePool:
        """Return the pool built by :meth:`init`.

        Raises:
            InitError: If :meth:`init` has not been called.
        """
        if self._backend is None:
            raise InitError("Cache pool not set, have you called init()?")
        return self._backend.pool

    def get_cache_adapter(self) -> CacheAdapter:
        """Return the adapter built by :meth:`init`.

        Raises:
            InitError: If :meth:`init` has not been called.
        """
        if self._backend is None:
            raise InitError("Cache adapter not set, have you called init()?")
        return self._backend.adapter

    def close(self) -> None:
        """Nothing to release for plain files; present for symmetry."""

    def _check_not_initialised(self) -> None:
        if self._backend is not None:
            raise InitError("Cache already initialised, init() may only be called once")

    def _get_dirname(self, path: str) -> str:
        return os.path.dirname(path.rstrip("/")) or "."

    def _get_basename(self, path: str) -> str:
        return os.path.basename(path.rstrip("/"))


class DiskcacheFactory(FilecacheFactory):
    """Builds a :class:`DiskCachePool` and a bound :class:`DiskCacheAdapter`.

    The whole cache path is used as the ``diskcache`` directory; the
    namespace split does not apply.
    """

    def init(self) -> CacheBackend:
        self._check_not_initialised()
        pool = DiskCachePool(self._cache_path)
        adapter = DiskCacheAdapter(self._parser)
        adapter.set_cache_pool(pool)

        self._backend = CacheBackend(pool=pool, adapter=adapter)
        logger.info("diskcache cache ready at %s", self._cache_path)
        return self._backend

    def close(self) -> None:
        """Close the ``diskcache`` handle if :meth:`init` opened one."""
        if self._backend is not None and isinstance(self._backend.pool, DiskCachePool):
            self._backend.pool.close()


def create_factory(config: CacheConfig, parser: Optional[RequestParser] = None) -> FilecacheFactory:
    """Return an un-initialised factory for the backend named in *config*.

    Raises:
        InitError: If ``config.path`` is unset.
    """
    if not config.path:
        raise InitError("Cache path not set, resolve the configuration first")
    if config.backend == StorageBackend.DISKCACHE:
        return DiskcacheFactory(config.path, parser)
    return FilecacheFactory(config.path, parser)


def create_backend(config: CacheConfig, parser: Optional[RequestParser] = None) -> CacheBackend:
    """Build and return the backend named in *config*."""
    return create_factory(config, parser).init()
