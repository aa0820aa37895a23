"""Durable cache store for dartcache.

This package provides :class:`CacheStore`, a single-file SQLite database
holding a TTL key/value cache for raw API responses and the corp-code
reference dictionary, plus :func:`make_cache_key` for deriving cache keys
from an endpoint and its request parameters.
"""

from dartcache.store.keys import clean_params, make_cache_key
from dartcache.store.store import CacheStore, normalize_corp_code

__all__ = ["CacheStore", "clean_params", "make_cache_key", "normalize_corp_code"]
