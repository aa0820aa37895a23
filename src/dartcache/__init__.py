"""dartcache -- local cache and response normalizer for the OpenDART API.

The package sits between a caller and the pay-per-call OpenDART disclosure
API. Raw responses are memoized in a single SQLite file with a TTL, the
corp-code dictionary is kept in the same file for local lookup, and every
payload is shrunk before it reaches the consumer.

Typical use::

    from dartcache.fetch import cached_fetch
    from dartcache.store import CacheStore

    with CacheStore("cache.db") as store:
        overview = cached_fetch(store, "/company.json", {"corp_code": "00126380"}, loader)

Modules:
    store: SQLite TTL cache and corp-code dictionary.
    optimize: Pure response normalization (factoring and sanitizing).
    corpcode: ``CORPCODE.xml`` parsing and dictionary sync.
    fetch: Cache-through composition of a loader, the store and the normalizer.
    config: XDG-aware configuration and database path resolution.
    app: Typer maintenance CLI.
"""

__version__ = "0.1.0"
