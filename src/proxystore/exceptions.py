"""Exception hierarchy for proxystore.

All exceptions inherit from :class:`ProxystoreError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`proxystore.exit_codes`.
The top-level error handler in :func:`proxystore.app.main` catches
``ProxystoreError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Errors raised by the backing store (``OSError``, unpickling failures,
``diskcache`` errors) are deliberately not wrapped: they reach the caller
unchanged.

Subclass hierarchy::

    ProxystoreError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- NotFoundError         (exit 4)
    +-- InitError             (exit 8)
    +-- EntryValidationError  (exit 9)
    +-- ConfigError           (exit 1)
"""

from proxystore.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INIT_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_VALIDATION_ERROR,
)


class ProxystoreError(Exception):
    """Base exception for all proxystore errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`proxystore.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ProxystoreError):
    """Raised for invalid CLI arguments or out-of-domain page parameters."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(ProxystoreError):
    """Raised by the admin CLI when a requested key has no stored entry."""

    exit_code = EXIT_NOT_FOUND


class InitError(ProxystoreError):
    """Raised when a component is used before its dependency was set up.

    Covers an adapter with no cache pool bound to it and a factory whose
    ``init()`` has not been called. The message names the missing piece.
    """

    exit_code = EXIT_INIT_FAILURE


class EntryValidationError(ProxystoreError):
    """Raised when a cache entry or its metadata lacks a required field."""

    exit_code = EXIT_VALIDATION_ERROR


class ConfigError(ProxystoreError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
