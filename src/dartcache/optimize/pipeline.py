"""The combined normalization pipeline applied to every API response."""

from __future__ import annotations

from typing import Any

from dartcache.optimize.factor import factor_common_fields
from dartcache.optimize.sanitize import sanitize_response


def optimize_response(data: Any, factor: bool = True, sanitize: bool = True) -> Any:
    """Factor common list fields, then sanitize.

    Factoring runs first so it sees the original rows; fields that are
    empty everywhere end up in ``common`` and are pruned there.

    Args:
        data: A deserialized API payload.
        factor: Run :func:`~dartcache.optimize.factor_common_fields`.
        sanitize: Run :func:`~dartcache.optimize.sanitize_response`.
    """
    if factor:
        data = factor_common_fields(data)
    if sanitize:
        data = sanitize_response(data)
    return data
