"""Shared test fixtures for proxystore.

Provides isolated config environments, ready-built cache backends over
``tmp_path``, and a CLI runner. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pytest

from proxystore.output import reset_output
from proxystore.storage import CacheBackend, DiskcacheFactory, FilecacheFactory


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Entry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_metadata() -> dict[str, Any]:
    return {
        "url": "http://example.com/page",
        "method": "GET",
        "key": "mykey",
    }


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """A cache path whose root is tmp_path/proxy and namespace is ``storage``."""
    return tmp_path / "proxy" / "storage"


@pytest.fixture
def file_backend(cache_path: Path) -> CacheBackend:
    """An initialised filesystem backend."""
    return FilecacheFactory(cache_path).init()


@pytest.fixture
def disk_backend(cache_path: Path) -> Iterator[CacheBackend]:
    """An initialised diskcache backend, closed after the test."""
    factory = DiskcacheFactory(cache_path)
    backend = factory.init()
    yield backend
    factory.close()


# ---------------------------------------------------------------------------
# Config isolation and CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path and clears
    the PROXYSTORE_* environment variables so tests never touch real user
    config or caches.
    """
    monkeypatch.setattr("proxystore.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["PROXYSTORE_CACHE_PATH", "PROXYSTORE_BACKEND"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
