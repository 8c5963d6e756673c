"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~proxystore.exceptions.ProxystoreError` subclass.
Scripts wrapping the admin CLI can inspect the exit code to determine the
failure class without parsing stderr.

Example::

    $ proxystore cache show 0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33
    $ echo $?
    4   # EXIT_NOT_FOUND -- no entry stored under that key
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested cache entry was not found."""

EXIT_INIT_FAILURE = 8
"""A storage component was used before its dependencies were set up."""

EXIT_VALIDATION_ERROR = 9
"""A cache entry or its metadata was missing a required field."""
