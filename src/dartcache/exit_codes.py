"""Numeric process exit codes for the ``dartcache`` CLI.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~dartcache.exceptions.DartcacheError` subclass.
Shell wrappers can inspect the exit code to tell a broken cache file apart
from a bad dictionary import without parsing stderr.

Example::

    $ dartcache corp import CORPCODE.zip
    $ echo $?
    5   # EXIT_CORP_CODE_PARSE_ERROR -- the archive had no CORPCODE.xml
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_STORE_ERROR = 3
"""The cache database could not be opened, or was used after closing."""

EXIT_DICTIONARY_IMPORT_ERROR = 4
"""A bulk corp-code import failed and was rolled back."""

EXIT_CORP_CODE_PARSE_ERROR = 5
"""The corp-code dictionary file could not be parsed."""

EXIT_API_STATUS_ERROR = 6
"""The upstream API answered with a non-success status code."""

EXIT_NOT_FOUND = 7
"""A lookup found nothing, e.g. ``cache get`` on a missing or expired key.

This is a normal outcome rather than a failure; the distinct code lets
scripts branch on a miss without treating it as an error.
"""
