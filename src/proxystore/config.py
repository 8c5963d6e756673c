"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for proxystore:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.proxystore/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~proxystore.models.GlobalConfig`
  JSON file storing the cache path, backend, page size, and output format.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the config file into the effective
  configuration, filling in the default cache path last.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from proxystore.exceptions import ConfigError
from proxystore.models import GlobalConfig, StorageBackend

_APP_NAME = "proxystore"
_CONFIG_FILENAME = "config.json"
_DEFAULT_NAMESPACE = "storage"

ENV_CACHE_PATH = "PROXYSTORE_CACHE_PATH"
ENV_BACKEND = "PROXYSTORE_BACKEND"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/proxystore/`` (default ``~/.config/proxystore/``).
    On macOS/Windows: ``~/.proxystore/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the default storage root for recorded responses.

    On Linux/BSD: ``$XDG_CACHE_HOME/proxystore/`` (default ``~/.cache/proxystore/``).
    On macOS/Windows: ``~/.proxystore/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/proxystore/`` (default ``~/.local/share/proxystore/``).
    On macOS/Windows: ``~/.proxystore/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_cache_path() -> Path:
    """Return the cache path used when nothing else sets one.

    The storage root is :func:`get_cache_dir` and the namespace is
    ``storage``.
    """
    return get_cache_dir() / _DEFAULT_NAMESPACE


# --- Atomic file writes ---


def atomic_write(path: Path, data: str | bytes) -> None:
    """Write *data* to *path* atomically via a sibling temp file and rename.

    Text is written as UTF-8. Parent directories are created as needed, and
    the temp file is removed if anything fails before the rename.
    """
    payload = data.encode("utf-8") if isinstance(data, str) else data
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = tmp.name
        try:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            os.unlink(tmp_path)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~proxystore.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _parse_backend(value: str, source: str) -> StorageBackend:
    try:
        return StorageBackend(value.lower())
    except ValueError:
        choices = ", ".join(b.value for b in StorageBackend)
        raise ConfigError(
            f"Unknown storage backend '{value}' from {source} (expected one of: {choices})"
        ) from None


def resolve_config(
    cli_cache_path: Optional[str] = None,
    cli_backend: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_cache_path``, ``cli_backend``, ``cli_format``)
        2. Environment variables (``PROXYSTORE_CACHE_PATH``, ``PROXYSTORE_BACKEND``)
        3. User config (``~/.config/proxystore/config.json``)
        4. Defaults (cache path from :func:`default_cache_path`)

    Returns:
        The effective :class:`~proxystore.models.GlobalConfig`, with
        ``cache.path`` always set.
    """
    config = load_global_config()

    # Cache path: CLI > env > config file > default
    env_path = os.environ.get(ENV_CACHE_PATH)
    if cli_cache_path is not None:
        config.cache.path = cli_cache_path
    elif env_path:
        config.cache.path = env_path
    elif not config.cache.path:
        config.cache.path = str(default_cache_path())

    # Backend: CLI > env > config file
    env_backend = os.environ.get(ENV_BACKEND)
    if cli_backend is not None:
        config.cache.backend = _parse_backend(cli_backend, "--backend")
    elif env_backend:
        config.cache.backend = _parse_backend(env_backend, ENV_BACKEND)

    if cli_format is not None:
        config.output.format = cli_format

    try:
        return GlobalConfig.model_validate(config.model_dump())
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
