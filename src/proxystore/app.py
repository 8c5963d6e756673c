"""Typer application and CLI entry point for proxystore.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``cache``, ``config``). The :func:`main` function is
the console-script entry point declared in ``pyproject.toml``. It installs
signal handlers and invokes the Typer app; unhandled exceptions are written
to a crash log under the data directory.

See Also:
    :mod:`proxystore.config`: Configuration resolution.
    :mod:`proxystore.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from proxystore import __version__
from proxystore.commands.cache import cache_app
from proxystore.commands.config import config_app
from proxystore.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="proxystore",
    help="Inspect and manage a recording proxy's response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(cache_app, name="cache", help="Inspect and prune cached responses.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"proxystore {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    cache_path: Optional[str] = typer.Option(
        None, "--cache-path", "-c", help="Cache path (parent is the root, leaf the namespace)."
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", "-b", help="Storage backend: filesystem or diskcache."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~proxystore.output.OutputManager`, turns on
    debug logging for the ``proxystore`` logger under ``--verbose``, and
    stores the storage overrides in ``ctx.obj`` for sub-commands.
    """
    from proxystore.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger("proxystore").setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["cache_path"] = cache_path
    ctx.obj["backend"] = backend
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from proxystore.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``proxystore`` console script.

    :class:`~proxystore.exceptions.ProxystoreError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from proxystore.exceptions import ProxystoreError
        from proxystore.output import error

        if isinstance(exc, ProxystoreError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
