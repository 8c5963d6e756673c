"""Key-value pools that hold cache entries, and the file store beneath them.

The cache adapters never touch storage directly; they talk to a
:class:`CachePool`. Two pools ship with the package:

* :class:`FilesystemCachePool` -- one file per key inside a namespace
  directory of a :class:`LocalFileStore`. The filename *is* the key, so the
  filesystem adapter can enumerate keys by listing the directory.
* :class:`DiskCachePool` -- a thin wrapper over :class:`diskcache.Cache`.

Pools serialise whatever value they are handed; callers pass structured
records (the ``dict`` form of :class:`~proxystore.models.CacheEntry`) and get
the same structure back. Errors from the underlying storage propagate
unchanged.
"""

from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

import diskcache

from proxystore.config import atomic_write
from proxystore.exceptions import InvalidUsageError

logger = logging.getLogger(__name__)

# Characters that may not appear in a pool key (they would escape the
# namespace directory or collide with path syntax).
_RESERVED_KEY_CHARS = frozenset("{}()/\\@:")


@runtime_checkable
class CachePool(Protocol):
    """The key-value capability every cache adapter is bound to."""

    def get(self, key: str) -> Any:
        """Return the stored value, or ``None`` when the key is absent."""
        ...

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return ``{key: value}`` for the keys that exist; missing keys are omitted."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any existing value."""
        ...

    def delete(self, key: str) -> bool:
        """Remove *key*; return whether it existed."""
        ...

    def list_keys(self) -> list[str]:
        """Return every stored key in a stable order."""
        ...


def validate_key(key: str) -> str:
    """Reject keys that cannot be used as a file name inside a namespace.

    Raises:
        InvalidUsageError: If *key* is empty, is ``.``/``..``, or contains a
            reserved character.
    """
    if not isinstance(key, str) or key in ("", ".", ".."):
        raise InvalidUsageError(f"Invalid cache key: {key!r}")
    bad = _RESERVED_KEY_CHARS.intersection(key)
    if bad:
        raise InvalidUsageError(
            f"Cache key {key!r} contains reserved characters: {''.join(sorted(bad))}"
        )
    return key


# --- File store ---


@dataclass(frozen=True)
class FileInfo:
    """One entry returned by :meth:`LocalFileStore.list_contents`."""

    type: str
    path: str
    basename: str
    size: int
    timestamp: int


class LocalFileStore:
    """Byte-oriented file storage rooted at a local directory.

    All paths are relative to *root*. Writes go to a temp file in the target
    directory and are renamed into place, so readers never see a partially
    written file. Paths that resolve outside the root raise
    :class:`~proxystore.exceptions.InvalidUsageError`.

    Args:
        root: The storage root. Created on first write if it does not exist.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The directory all relative paths resolve against."""
        return self._root

    def list_contents(self, directory: str = "") -> list[FileInfo]:
        """List the regular files directly inside *directory*.

        Hidden files (including in-flight temp files) are skipped. A missing
        directory lists as empty. Results are sorted by file name.
        """
        base = self._resolve(directory)
        if not base.is_dir():
            return []
        contents: list[FileInfo] = []
        for entry in sorted(base.iterdir(), key=lambda p: p.name):
            if entry.name.startswith(".") or not entry.is_file():
                continue
            stat = entry.stat()
            contents.append(
                FileInfo(
                    type="file",
                    path=entry.relative_to(self._root).as_posix(),
                    basename=entry.name,
                    size=stat.st_size,
                    timestamp=int(stat.st_mtime),
                )
            )
        return contents

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read(self, path: str) -> Optional[bytes]:
        """Return the file's bytes, or ``None`` if it does not exist."""
        try:
            return self._resolve(path).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, path: str, data: bytes) -> None:
        """Write *data* to *path* atomically, creating parent directories."""
        atomic_write(self._resolve(path), data)

    def delete(self, path: str) -> bool:
        """Delete *path*; return ``False`` if it did not exist."""
        try:
            self._resolve(path).unlink()
        except FileNotFoundError:
            return False
        return True

    def _resolve(self, path: str) -> Path:
        if not path:
            return self._root
        target = self._root / path
        if not target.resolve().is_relative_to(self._root.resolve()):
            raise InvalidUsageError(f"Path {path!r} is outside the storage root {self._root}")
        return target


# --- Pools ---


class FilesystemCachePool:
    """A :class:`CachePool` storing one pickled file per key.

    Every key becomes a file named after the key inside *folder*, a
    namespace directory under the file store's root.

    Args:
        filesystem: The file store to write into.
        folder: Namespace directory for this pool's files.
    """

    def __init__(self, filesystem: LocalFileStore, folder: str = "cache") -> None:
        self._filesystem = filesystem
        self._folder = folder

    @property
    def folder(self) -> str:
        return self._folder

    def get(self, key: str) -> Any:
        data = self._filesystem.read(self._path(key))
        if data is None:
            return None
        return pickle.loads(data)

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for key in keys:
            data = self._filesystem.read(self._path(key))
            if data is not None:
                found[key] = pickle.loads(data)
        return found

    def set(self, key: str, value: Any) -> None:
        self._filesystem.write(self._path(key), pickle.dumps(value))
        logger.debug("Stored cache item '%s' in '%s'", key, self._folder)

    def delete(self, key: str) -> bool:
        existed = self._filesystem.delete(self._path(key))
        logger.debug("Deleted cache item '%s' (existed=%s)", key, existed)
        return existed

    def list_keys(self) -> list[str]:
        return [info.basename for info in self._filesystem.list_contents(self._folder)]

    def clear(self) -> None:
        for key in self.list_keys():
            self._filesystem.delete(self._path(key))

    def _path(self, key: str) -> str:
        return f"{self._folder}/{validate_key(key)}"


class DiskCachePool:
    """A :class:`CachePool` over a :class:`diskcache.Cache` directory.

    Args:
        directory: The ``diskcache`` directory. Created if missing.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Any:
        return self._cache.get(key)

    def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for key in keys:
            value = self._cache.get(key, default=None)
            if value is not None:
                found[key] = value
        return found

    def set(self, key: str, value: Any) -> None:
        self._cache.set(key, value)
        logger.debug("Stored cache item '%s' in %s", key, self._directory)

    def delete(self, key: str) -> bool:
        existed = self._cache.delete(key)
        logger.debug("Deleted cache item '%s' (existed=%s)", key, existed)
        return bool(existed)

    def list_keys(self) -> list[str]:
        return sorted(str(key) for key in self._cache.iterkeys())

    def clear(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __len__(self) -> int:
        return len(self._cache)
