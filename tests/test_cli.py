"""End-to-end tests for the proxystore admin CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from proxystore import __version__
from proxystore.app import app
from proxystore.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from proxystore.storage import FilecacheFactory


@pytest.fixture()
def cache_path(isolated_config: Path) -> Path:
    return isolated_config / "proxy" / "storage"


@pytest.fixture()
def populated(cache_path: Path) -> Path:
    """Record three entries into the cache at cache_path."""
    adapter = FilecacheFactory(cache_path).init().adapter
    for n in range(1, 4):
        adapter.store_response(
            f"HTTP/1.1 200 OK\r\n\r\nbody {n}".encode(),
            {"url": f"http://example.com/{n}", "method": "GET", "key": f"key{n}"},
        )
    return cache_path


def _invoke(cli_runner, cache_path: Path, *args: str):
    return cli_runner.invoke(
        app, ["--plain", "--no-color", "--cache-path", str(cache_path), *args]
    )


class TestVersion:
    def test_version_flag(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCount:
    def test_empty_cache(self, cli_runner, cache_path: Path) -> None:
        result = _invoke(cli_runner, cache_path, "cache", "count")
        assert result.exit_code == 0
        assert result.stdout.strip() == "0"

    def test_populated_cache(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "count")
        assert result.exit_code == 0
        assert result.stdout.strip() == "3"

    def test_cache_path_from_env(self, cli_runner, populated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROXYSTORE_CACHE_PATH", str(populated))
        result = cli_runner.invoke(app, ["--plain", "cache", "count"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "3"


class TestKeys:
    def test_first_page(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "keys", "--per-page", "2")
        assert result.exit_code == 0
        assert result.stdout.split() == ["key1", "key2"]

    def test_second_page(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "keys", "--page", "2", "--per-page", "2")
        assert result.stdout.split() == ["key3"]

    def test_zero_page_is_usage_error(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "keys", "--page", "0")
        assert result.exit_code == EXIT_INVALID_USAGE


class TestList:
    def test_table_without_responses(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "list")
        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "key\tmethod\turl"
        assert lines[1] == "key1\tGET\thttp://example.com/1"
        assert "body 1" not in result.stdout

    def test_json_with_responses(self, cli_runner, populated: Path) -> None:
        result = cli_runner.invoke(
            app, ["--json", "--cache-path", str(populated), "cache", "list", "--with-response"]
        )
        assert result.exit_code == 0
        items = json.loads(result.stdout)
        assert [item["key"] for item in items] == ["key1", "key2", "key3"]
        assert items[0]["response"].endswith("body 1")


class TestShow:
    def test_show_entry(self, cli_runner, populated: Path) -> None:
        result = cli_runner.invoke(
            app, ["--json", "--cache-path", str(populated), "cache", "show", "key2"]
        )
        assert result.exit_code == 0
        entry = json.loads(result.stdout)
        assert entry["url"] == "http://example.com/2"
        assert entry["method"] == "GET"

    def test_show_body_only(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "show", "key1", "--body")
        assert result.exit_code == 0
        assert "body 1" in result.stdout

    def test_show_missing_key(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "show", "nope")
        assert result.exit_code == EXIT_NOT_FOUND


class TestExpire:
    def test_expire_removes_entry(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "expire", "key1")
        assert result.exit_code == 0
        count = _invoke(cli_runner, populated, "cache", "count")
        assert count.stdout.strip() == "2"

    def test_expire_unknown_key_is_not_an_error(self, cli_runner, populated: Path) -> None:
        result = _invoke(cli_runner, populated, "cache", "expire", "nope")
        assert result.exit_code == 0


class TestKeyCommand:
    def test_key_from_request_file(self, cli_runner, cache_path: Path, isolated_config: Path) -> None:
        request = isolated_config / "request.txt"
        request.write_bytes(b"GET http://example.com/ HTTP/1.1\r\nHost: example.com\r\n\r\n")
        result = _invoke(cli_runner, cache_path, "cache", "key", str(request))
        assert result.exit_code == 0
        assert result.stdout.strip() == "628735d3a16b67b1dd5fbfbd10a15f2c28362bbd"

    def test_key_with_effective_url(self, cli_runner, cache_path: Path, isolated_config: Path) -> None:
        request = isolated_config / "request.txt"
        request.write_bytes(b"GET http://secure.example.com/ HTTP/1.1\r\n\r\n")
        result = _invoke(
            cli_runner, cache_path, "cache", "key", str(request), "--url", "https://secure.example.com/"
        )
        assert result.stdout.strip() == "896e0368b538cfef5ef3afa433946777d48a3180"

    def test_missing_request_file(self, cli_runner, cache_path: Path) -> None:
        result = _invoke(cli_runner, cache_path, "cache", "key", "/no/such/file")
        assert result.exit_code == EXIT_INVALID_USAGE


class TestConfigCommands:
    def test_set_and_show(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.page_size", "2"])
        assert result.exit_code == 0

        shown = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert shown.exit_code == 0
        data = json.loads(shown.stdout)
        assert data["cache"]["page_size"] == 2

    def test_page_size_from_config_used_for_listing(self, cli_runner, populated: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "cache.page_size", "1"])
        result = _invoke(cli_runner, populated, "cache", "keys")
        assert result.stdout.split() == ["key1"]

    def test_set_unknown_key(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.nope", "1"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_set_invalid_backend(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.backend", "redis"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_reset_with_force(self, cli_runner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "cache.page_size", "7"])
        result = cli_runner.invoke(app, ["config", "reset", "--force"])
        assert result.exit_code == 0
        shown = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(shown.stdout)["cache"]["page_size"] == 20
