"""SQLite-backed TTL cache and corp-code dictionary.

A single database file holds two tables:

``cache``
    Opaque key/value entries with an absolute expiry in epoch milliseconds.
    Expired rows are evicted lazily by :meth:`CacheStore.get` and in bulk by
    :meth:`CacheStore.clear_expired`; nothing runs in the background.

``corp_codes``
    The OpenDART company dictionary, bulk-loaded once and searched by name
    substring, ticker or code.

One :class:`sqlite3.Connection` is owned per store and guarded by a
re-entrant lock so a store can be shared between threads. The database runs
in WAL mode with a bounded busy timeout, so other processes reading the same
file never see a half-finished import and never wait on a writer for longer
than ``busy_timeout`` seconds.

Example::

    from dartcache.store import CacheStore

    with CacheStore("/tmp/dart/cache.db") as store:
        store.set("/company.json?corp_code=00126380", payload_json, ttl=600)
        store.get("/company.json?corp_code=00126380")
"""

from __future__ import annotations

import logging
import math
import sqlite3
import threading
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from dartcache.exceptions import DictionaryImportError, StoreClosedError, StoreInitError
from dartcache.models import DEFAULT_BUSY_TIMEOUT, DEFAULT_TTL_SECONDS, CorpCode

logger = logging.getLogger(__name__)

CacheValue = Union[str, bytes]

SEARCH_LIMIT = 50
"""Maximum number of rows :meth:`CacheStore.search_dictionary` returns."""

CODE_WIDTH = 8
TICKER_WIDTH = 6

_MAX_EXPIRES_AT = 2**63 - 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS cache (
        key        TEXT PRIMARY KEY,
        value      BLOB,
        expires_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_cache_expires_at ON cache(expires_at)",
    """
    CREATE TABLE IF NOT EXISTS corp_codes (
        code     TEXT PRIMARY KEY,
        name     TEXT NOT NULL DEFAULT '',
        ticker   TEXT NOT NULL DEFAULT '',
        modified TEXT NOT NULL DEFAULT ''
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_corp_codes_name ON corp_codes(name)",
    "CREATE INDEX IF NOT EXISTS idx_corp_codes_ticker ON corp_codes(ticker)",
)

_SELECT_SQL = "SELECT value, expires_at FROM cache WHERE key = ?"

# The expiry guard keeps a lazy eviction from deleting a row another
# process refreshed between our SELECT and DELETE.
_EVICT_SQL = "DELETE FROM cache WHERE key = ? AND expires_at = ?"

_UPSERT_SQL = "INSERT OR REPLACE INTO cache (key, value, expires_at) VALUES (?, ?, ?)"

_DELETE_SQL = "DELETE FROM cache WHERE key = ?"

_CLEAR_EXPIRED_SQL = "DELETE FROM cache WHERE expires_at <= ?"

_UPSERT_CORP_SQL = """
INSERT OR REPLACE INTO corp_codes (code, name, ticker, modified)
VALUES (?, ?, ?, ?)
"""

# instr() is a literal, case-sensitive substring test: no LIKE wildcards
# leak in from user queries.
_SEARCH_CORP_SQL = """
SELECT code, name, ticker, modified
FROM corp_codes
WHERE instr(name, :query) > 0 OR ticker = :query OR code = :query
ORDER BY name ASC, code ASC
LIMIT :limit
"""


def _now_ms() -> int:
    return int(time.time() * 1000)


def _pad(value: str, width: int) -> str:
    """Trim *value* and left-pad it with zeros; an empty value stays empty."""
    value = value.strip()
    if not value:
        return value
    return value.rjust(width, "0")


def normalize_corp_code(record: Union[CorpCode, Mapping[str, Any]]) -> CorpCode:
    """Return *record* as a :class:`CorpCode` with code and ticker zero-padded.

    Raises:
        pydantic.ValidationError: If a mapping cannot be validated.
    """
    if not isinstance(record, CorpCode):
        record = CorpCode.model_validate(record)
    return CorpCode(
        code=_pad(record.code, CODE_WIDTH),
        name=record.name,
        ticker=_pad(record.ticker, TICKER_WIDTH),
        modified=record.modified,
    )


class CacheStore:
    """Disk-backed TTL cache plus the corp-code dictionary.

    The store exclusively owns its database connection. Use it as a
    context manager, or call :meth:`close` explicitly; every operation on a
    closed store raises :class:`~dartcache.exceptions.StoreClosedError`.

    Args:
        path: Database file. Missing parent directories are created.
        default_ttl: TTL in seconds used by :meth:`set` when none is given.
        busy_timeout: Seconds to wait on a database locked by another
            connection before the operation fails.

    Raises:
        StoreInitError: If the file cannot be opened or the schema cannot
            be created.
    """

    def __init__(
        self,
        path: str | Path,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ) -> None:
        self._path = Path(path)
        self._default_ttl = default_ttl
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = self._open(busy_timeout)

    def _open(self, busy_timeout: float) -> sqlite3.Connection:
        conn: Optional[sqlite3.Connection] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self._path), timeout=busy_timeout, check_same_thread=False
            )
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                for statement in _SCHEMA:
                    conn.execute(statement)
        except (OSError, sqlite3.Error) as exc:
            if conn is not None:
                conn.close()
            raise StoreInitError(
                f"Cannot open cache database at {self._path}: {exc}"
            ) from exc
        logger.debug("Opened cache database %s", self._path)
        return conn

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def path(self) -> Path:
        """Location of the database file."""
        return self._path

    @property
    def default_ttl(self) -> float:
        """TTL in seconds applied when :meth:`set` is called without one."""
        return self._default_ttl

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Close the database connection. Calling it twice is harmless."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Closed cache database %s", self._path)

    def __enter__(self) -> CacheStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<CacheStore {str(self._path)!r} ({state})>"

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreClosedError(f"Cache store {self._path} is closed")
        return self._conn

    # ------------------------------------------------------------------ #
    # TTL cache
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Optional[CacheValue]:
        """Return the value stored under *key*, or ``None``.

        An entry whose expiry has passed is deleted and reported as
        missing. The stored value is returned exactly as it was written.
        """
        with self._lock:
            conn = self._connection()
            row = conn.execute(_SELECT_SQL, (key,)).fetchone()
            if row is None:
                return None
            value, expires_at = row
            if _now_ms() > expires_at:
                with conn:
                    conn.execute(_EVICT_SQL, (key, expires_at))
                logger.debug("Evicted expired cache entry %s", key)
                return None
            return value

    def set(self, key: str, value: CacheValue, ttl: Optional[float] = None) -> None:
        """Store *value* under *key* for *ttl* seconds.

        An existing entry is replaced outright, value and expiry alike.

        Args:
            key: Cache key.
            value: Opaque payload, ``str`` or ``bytes``.
            ttl: Lifetime in seconds (fractions allowed). ``None`` uses
                :attr:`default_ttl`.

        Raises:
            ValueError: If *ttl* is negative or not finite.
        """
        if ttl is None:
            ttl = self._default_ttl
        if ttl < 0 or not math.isfinite(ttl):
            raise ValueError(f"ttl must be a finite number >= 0, got {ttl}")
        # SQLite INTEGER is 64-bit.
        expires_at = min(_now_ms() + int(round(ttl * 1000)), _MAX_EXPIRES_AT)
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(_UPSERT_SQL, (key, value, expires_at))

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(_DELETE_SQL, (key,))

    def clear_expired(self) -> int:
        """Delete every entry whose expiry is at or before now.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            conn = self._connection()
            with conn:
                removed = conn.execute(_CLEAR_EXPIRED_SQL, (_now_ms(),)).rowcount
        if removed:
            logger.info("Removed %d expired cache entries from %s", removed, self._path)
        return removed

    def clear(self) -> int:
        """Delete every cache entry. The corp-code dictionary is untouched.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            conn = self._connection()
            with conn:
                removed = conn.execute("DELETE FROM cache").rowcount
        logger.info("Cleared %d cache entries from %s", removed, self._path)
        return removed

    # ------------------------------------------------------------------ #
    # Corp-code dictionary
    # ------------------------------------------------------------------ #

    def has_dictionary_entries(self) -> bool:
        """Return ``True`` once the dictionary holds at least one record."""
        with self._lock:
            conn = self._connection()
            (exists,) = conn.execute(
                "SELECT EXISTS(SELECT 1 FROM corp_codes)"
            ).fetchone()
        return bool(exists)

    def dictionary_count(self) -> int:
        with self._lock:
            conn = self._connection()
            (count,) = conn.execute("SELECT COUNT(*) FROM corp_codes").fetchone()
        return count

    def bulk_upsert_dictionary(
        self, records: Iterable[Union[CorpCode, Mapping[str, Any]]]
    ) -> int:
        """Insert or replace a batch of corp-code records in one transaction.

        Each record's code is trimmed and zero-padded to 8 digits and its
        ticker to 6 digits; empty values stay empty. Missing names and
        modification dates are stored as ``""``.

        Args:
            records: :class:`~dartcache.models.CorpCode` instances or
                mappings using either the store's field names or the
                OpenDART XML element names.

        Returns:
            Number of records written.

        Raises:
            DictionaryImportError: If a record is invalid or the transaction
                fails. Nothing is written in either case.
        """
        try:
            rows = [
                (c.code, c.name, c.ticker, c.modified)
                for c in map(normalize_corp_code, records)
            ]
        except ValidationError as exc:
            raise DictionaryImportError(f"Invalid corp-code record: {exc}") from exc

        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.executemany(_UPSERT_CORP_SQL, rows)
            except sqlite3.Error as exc:
                logger.warning(
                    "Corp-code import of %d records rolled back: %s", len(rows), exc
                )
                raise DictionaryImportError(
                    f"Corp-code import failed and was rolled back: {exc}"
                ) from exc
        logger.info("Imported %d corp codes into %s", len(rows), self._path)
        return len(rows)

    def search_dictionary(self, query: str, limit: int = SEARCH_LIMIT) -> list[CorpCode]:
        """Find corp codes by name substring, exact ticker or exact code.

        The name match is a literal, case-sensitive substring test. Results
        are ordered by name (then code) and capped at *limit*, which never
        exceeds :data:`SEARCH_LIMIT`.
        """
        if limit <= 0:
            return []
        limit = min(limit, SEARCH_LIMIT)
        with self._lock:
            conn = self._connection()
            rows = conn.execute(
                _SEARCH_CORP_SQL, {"query": query, "limit": limit}
            ).fetchall()
        return [
            CorpCode(code=code, name=name, ticker=ticker, modified=modified)
            for code, name, ticker, modified in rows
        ]

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def stats(self) -> dict[str, Any]:
        """Return entry counts for both tables and the database location.

        Returns:
            A ``dict`` with ``path``, ``entries`` (all cache rows),
            ``expired`` (rows due for :meth:`clear_expired`),
            ``corp_codes`` and ``default_ttl``.
        """
        with self._lock:
            conn = self._connection()
            (entries,) = conn.execute("SELECT COUNT(*) FROM cache").fetchone()
            (expired,) = conn.execute(
                "SELECT COUNT(*) FROM cache WHERE expires_at <= ?", (_now_ms(),)
            ).fetchone()
            (corp_codes,) = conn.execute("SELECT COUNT(*) FROM corp_codes").fetchone()
        return {
            "path": str(self._path),
            "entries": entries,
            "expired": expired,
            "corp_codes": corp_codes,
            "default_ttl": self._default_ttl,
        }
