"""Cache-through access to the upstream API.

:func:`cached_fetch` is the glue between a caller's API loader, the
:class:`~dartcache.store.CacheStore` and the normalizer:

1. derive the cache key from the endpoint and the defined parameters,
2. on a hit, decode the stored JSON,
3. on a miss, call the loader, refuse payloads whose ``status`` is not the
   success code, and store the raw payload verbatim,
4. pass the payload through :func:`~dartcache.optimize.optimize_response`.

Only raw payloads are cached; normalization always runs on the way out, so
changing the normalizer never requires purging the cache.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional

from dartcache.exceptions import ApiStatusError
from dartcache.optimize import SUCCESS_STATUS, optimize_response
from dartcache.store import CacheStore, clean_params, make_cache_key

logger = logging.getLogger(__name__)

_MISS = object()

Loader = Callable[[str, dict[str, Any]], Any]
"""Performs the API call: ``loader(endpoint, params) -> deserialized payload``."""


def check_status(payload: Any) -> None:
    """Raise :class:`~dartcache.exceptions.ApiStatusError` for error payloads.

    OpenDART answers HTTP 200 even for logical errors and reports them in
    the ``status`` field. Payloads without a ``status`` field pass.
    """
    if not isinstance(payload, Mapping):
        return
    status = payload.get("status")
    if status is not None and status != SUCCESS_STATUS:
        raise ApiStatusError(str(status), str(payload.get("message") or ""))


def cached_fetch(
    store: CacheStore,
    endpoint: str,
    params: Optional[Mapping[str, Any]],
    loader: Loader,
    ttl: Optional[float] = None,
    optimize: bool = True,
) -> Any:
    """Return the payload for *endpoint*, from the cache when possible.

    Args:
        store: Cache to read from and write to.
        endpoint: API path, e.g. ``/company.json``.
        params: Request parameters; ``None`` values are dropped.
        loader: Called on a cache miss with the endpoint and the cleaned
            parameters.
        ttl: Lifetime of a fresh entry in seconds; ``None`` uses the
            store's default.
        optimize: Normalize the payload before returning it.

    Raises:
        ApiStatusError: If the loader returns a non-success status. The
            payload is not cached.
    """
    key = make_cache_key(endpoint, params)
    payload = _read_cached(store, key)

    if payload is _MISS:
        logger.debug("Cache miss for %s", key)
        payload = loader(endpoint, clean_params(params))
        check_status(payload)
        store.set(key, json.dumps(payload, ensure_ascii=False), ttl)
    else:
        logger.debug("Cache hit for %s", key)

    return optimize_response(payload) if optimize else payload


def _read_cached(store: CacheStore, key: str) -> Any:
    raw = store.get(key)
    if raw is None:
        return _MISS
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable cache entry %s", key)
        store.delete(key)
        return _MISS
