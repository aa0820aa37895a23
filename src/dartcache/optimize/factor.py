"""Factor fields shared by every item of a ``list`` payload into ``common``.

OpenDART list endpoints repeat the same ``corp_code``, ``bsns_year`` and
similar fields on every row. Moving them into a single ``common`` object
shrinks the payload without losing information::

    >>> factor_common_fields({"list": [{"a": "x", "b": 1}, {"a": "x", "b": 2}]})
    {'list': [{'b': 1}, {'b': 2}], 'common': {'a': 'x'}}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _strict_equal(left: Any, right: Any) -> bool:
    """Deep equality that, unlike ``==``, never treats ``True`` as ``1``."""
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            _strict_equal(left[key], right[key]) for key in left
        )
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(map(_strict_equal, left, right))
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def factor_common_fields(data: Any) -> Any:
    """Move fields with identical values across all ``list`` items into ``common``.

    Only a mapping whose ``list`` field holds two or more mappings is
    touched, and only at the top level. Candidate fields come from the
    first item; a field is common when every item carries it with a deeply
    equal value. If no field qualifies, *data* is returned as-is.

    Returns:
        A new mapping with the reduced ``list`` and a ``common`` field, or
        the unchanged input. Any existing ``common`` field is replaced.
    """
    if not isinstance(data, Mapping):
        return data
    items = data.get("list")
    if not isinstance(items, (list, tuple)) or len(items) < 2:
        return data
    if not all(isinstance(item, Mapping) for item in items):
        return data

    first, rest = items[0], items[1:]
    common = {
        key: value
        for key, value in first.items()
        if all(key in item and _strict_equal(item[key], value) for item in rest)
    }
    if not common:
        return data

    result = dict(data)
    result["list"] = [
        {key: value for key, value in item.items() if key not in common}
        for item in items
    ]
    result["common"] = common
    return result
