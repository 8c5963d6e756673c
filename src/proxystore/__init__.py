"""proxystore -- storage adapters for a recording HTTP proxy.

This package turns proxied request/response pairs into content-addressed
cache entries and turns stored entries back into retrievable, paginable
records. A proxy asks a factory for a backend, computes a key with
:func:`~proxystore.storage.keys.create_cache_key`, and writes or reads
entries through the backend's pool. Admin tooling (the ``proxystore`` CLI)
uses the adapter's enumeration and pagination operations.

Typical workflow::

    from proxystore.storage import FilecacheFactory

    factory = FilecacheFactory("/var/cache/proxy/storage")
    backend = factory.init()
    backend.adapter.get_page_of_cache_items(1, 20)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    request_parser: Method and body extraction from raw proxy requests.
    storage: Cache keys, pools, adapters, and factories.
"""

__version__ = "0.3.0"
