"""Deterministic cache keys for upstream API requests.

Keys are readable rather than hashed so an entry can be inspected with
``dartcache cache get``::

    >>> make_cache_key("/list.json", {"page_no": 1, "corp_code": "00126380", "end_de": None})
    '/list.json?corp_code=00126380&page_no=1'

Parameters whose value is ``None`` are left out, so an omitted optional
argument and an explicit ``None`` resolve to the same entry.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return *params* without the entries whose value is ``None``."""
    if not params:
        return {}
    return {name: value for name, value in params.items() if value is not None}


def make_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build the cache key for a request to *endpoint* with *params*.

    Defined parameters are sorted by name and joined as ``name=value``
    pairs after a ``?``. Without parameters the key is the endpoint alone.
    """
    defined = clean_params(params)
    if not defined:
        return endpoint
    query = "&".join(f"{name}={_render(defined[name])}" for name in sorted(defined))
    return f"{endpoint}?{query}"
