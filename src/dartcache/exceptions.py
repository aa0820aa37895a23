"""Exception hierarchy for dartcache.

All exceptions inherit from :class:`DartcacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`dartcache.exit_codes`.
The top-level error handler in :func:`dartcache.app.main` catches
``DartcacheError`` and exits with the appropriate code.

Missing keys, expired entries and empty search results are *not* errors;
the store reports them as ``None`` or an empty list.

Subclass hierarchy::

    DartcacheError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- StoreInitError         (exit 3)
    +-- StoreClosedError       (exit 3)
    +-- DictionaryImportError  (exit 4)
    +-- CorpCodeParseError     (exit 5)
    +-- ApiStatusError         (exit 6)
    +-- ConfigError            (exit 1)
"""

from dartcache.exit_codes import (
    EXIT_API_STATUS_ERROR,
    EXIT_CORP_CODE_PARSE_ERROR,
    EXIT_DICTIONARY_IMPORT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORE_ERROR,
)


class DartcacheError(Exception):
    """Base exception for all dartcache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(DartcacheError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class StoreInitError(DartcacheError):
    """Raised when the cache database file or its schema cannot be created."""

    exit_code = EXIT_STORE_ERROR


class StoreClosedError(DartcacheError):
    """Raised when a :class:`~dartcache.store.CacheStore` is used after :meth:`close`."""

    exit_code = EXIT_STORE_ERROR


class DictionaryImportError(DartcacheError):
    """Raised when a bulk corp-code upsert fails.

    The import runs in a single transaction, so when this is raised the
    dictionary table still holds exactly what it held before the call.
    """

    exit_code = EXIT_DICTIONARY_IMPORT_ERROR


class CorpCodeParseError(DartcacheError):
    """Raised when a ``CORPCODE.xml`` document or its zip archive is unreadable."""

    exit_code = EXIT_CORP_CODE_PARSE_ERROR


class ApiStatusError(DartcacheError):
    """Raised when an upstream payload carries a non-success ``status`` code.

    Such payloads are never written to the cache.

    Args:
        status: The API status code, e.g. ``"013"``.
        message: The API's own message text.
    """

    exit_code = EXIT_API_STATUS_ERROR

    def __init__(self, status: str, message: str = ""):
        super().__init__(f"API error {status}: {message}" if message else f"API error {status}")
        self.status = status
        self.api_message = message


class ConfigError(DartcacheError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE
