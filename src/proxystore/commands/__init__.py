"""Built-in CLI sub-commands for proxystore.

* :mod:`~proxystore.commands.cache` -- count, page through, show, and
  expire recorded entries, and compute cache keys for raw requests.
* :mod:`~proxystore.commands.config` -- view and modify global settings.

Each module exports a :class:`typer.Typer` sub-application that
:func:`proxystore.app.main` registers on the root app.
"""
