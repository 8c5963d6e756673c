"""Cache commands -- inspect and prune recorded responses.

Provides the ``proxystore cache`` sub-command group. Every command opens the
backend named by the resolved configuration (see
:func:`~proxystore.config.resolve_config`), runs one adapter operation, and
prints the result on stdout in the active output format.

Example::

    proxystore cache count
    proxystore cache list --page 2 --per-page 50
    proxystore --json cache show 0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33
    proxystore cache expire 0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from proxystore.exceptions import NotFoundError, ProxystoreError
from proxystore.output import debug, error, format_response, info, print_data, print_table, success


cache_app = typer.Typer(no_args_is_help=True)


@contextmanager
def _open_adapter(ctx: typer.Context) -> Iterator[Any]:
    """Yield the configured adapter, turning proxystore errors into CLI exits."""
    from proxystore.config import resolve_config
    from proxystore.storage import create_factory

    obj = ctx.obj or {}
    factory = None
    try:
        config = resolve_config(
            cli_cache_path=obj.get("cache_path"),
            cli_backend=obj.get("backend"),
        )
        debug(f"Opening {config.cache.backend.value} cache at {config.cache.path}")
        factory = create_factory(config.cache)
        backend = factory.init()
        ctx.obj = {**obj, "page_size": config.cache.page_size}
        yield backend.adapter
    except ProxystoreError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        if factory is not None:
            factory.close()


def _page_size(ctx: typer.Context, per_page: Optional[int]) -> int:
    if per_page is not None:
        return per_page
    return (ctx.obj or {}).get("page_size", 20)


def _displayable(entry: Any) -> Any:
    """Return *entry* with a bytes ``response`` decoded for display."""
    if isinstance(entry, dict) and isinstance(entry.get("response"), bytes):
        return {**entry, "response": entry["response"].decode("utf-8", errors="replace")}
    if isinstance(entry, bytes):
        return entry.decode("utf-8", errors="replace")
    return entry


@cache_app.command("count")
def cache_count(ctx: typer.Context) -> None:
    """Print the number of stored entries."""
    with _open_adapter(ctx) as adapter:
        print_data(str(adapter.count_cache_items()))


@cache_app.command("keys")
def cache_keys(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", help="Page number, starting at 1."),
    per_page: Optional[int] = typer.Option(
        None, "--per-page", help="Keys per page (default from config)."
    ),
) -> None:
    """Print one page of cache keys, one per line.

    Example::

        proxystore cache keys --page 3 --per-page 100
    """
    with _open_adapter(ctx) as adapter:
        keys = adapter.get_page_of_cache_keys(page, _page_size(ctx, per_page))
        if not keys:
            info(f"No keys on page {page}.")
            return
        for key in keys:
            print_data(key)


@cache_app.command("list")
def cache_list(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", help="Page number, starting at 1."),
    per_page: Optional[int] = typer.Option(
        None, "--per-page", help="Entries per page (default from config)."
    ),
    with_response: bool = typer.Option(
        False, "--with-response", help="Include response bodies."
    ),
) -> None:
    """List one page of stored entries.

    Without ``--with-response`` the entries are shown as a table of key,
    method, and URL. With it, the full records are printed.
    """
    with _open_adapter(ctx) as adapter:
        items = adapter.get_page_of_cache_items(
            page, _page_size(ctx, per_page), include_response=with_response
        )
        if not items:
            info(f"No entries on page {page}.")
            return
        if with_response:
            format_response([_displayable(item) for item in items])
            return
        rows = [
            [str(item.get("key", "")), str(item.get("method", "")), str(item.get("url", ""))]
            for item in items
            if isinstance(item, dict)
        ]
        print_table(["key", "method", "url"], rows, title=f"Cache entries (page {page})")


@cache_app.command("show")
def cache_show(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key to look up."),
    body_only: bool = typer.Option(
        False, "--body", help="Print only the recorded response body."
    ),
) -> None:
    """Show one stored entry.

    Exits with code 4 when nothing is stored under KEY.
    """
    with _open_adapter(ctx) as adapter:
        entry = adapter.read_cache_item(key)
        if not entry:
            raise NotFoundError(f"No cache entry for key '{key}'")
        if body_only:
            body = adapter.convert_cache_to_response(entry)
            print_data(_displayable(body))
            return
        format_response(_displayable(entry))


@cache_app.command("expire")
def cache_expire(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key to delete."),
) -> None:
    """Delete one stored entry. Unknown keys are not an error."""
    with _open_adapter(ctx) as adapter:
        adapter.expire_cache_item(key)
        success(f"Expired {key}")


@cache_app.command("key")
def cache_key(
    ctx: typer.Context,
    request_file: str = typer.Argument(
        help="File holding the raw proxied request, or '-' for stdin."
    ),
    url: Optional[str] = typer.Option(
        None, "--url", help="Effective URL (defaults to the request line's target)."
    ),
) -> None:
    """Compute the cache key a raw request would be stored under.

    Pass ``--url`` for tunnelled HTTPS requests, whose request line carries
    the rewritten URL rather than the one the client asked for.
    """
    from proxystore.request_parser import RequestParser
    from proxystore.storage import create_cache_key

    if request_file == "-":
        raw = sys.stdin.buffer.read()
    else:
        path = Path(request_file)
        if not path.is_file():
            error(f"Request file not found: {path}")
            raise typer.Exit(code=2)
        raw = path.read_bytes()

    parser = RequestParser()
    effective_url = url if url is not None else parser.extract_url(raw)
    print_data(create_cache_key(raw, effective_url, parser))
