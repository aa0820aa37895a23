"""Recursive pruning of API payloads.

:func:`sanitize_response` walks a JSON-like value and

* trims strings, expanding those that hold an XML document,
* drops ``None`` and empty strings from lists and mappings,
* drops lists and mappings left empty, all the way up to the root,
* drops the OpenDART success markers ``status: "000"`` and
  ``message: "정상"``; any other status keeps both fields,
* unwraps mappings whose only field is the XML text key.

Numbers and booleans pass through untouched, so ``0`` and ``False`` are kept.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

from dartcache.optimize.xml import TEXT_KEY, looks_like_xml, parse_xml

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "000"
SUCCESS_MESSAGE = "정상"


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _is_success_marker(key: str, value: Any) -> bool:
    return (key == "status" and value == SUCCESS_STATUS) or (
        key == "message" and value == SUCCESS_MESSAGE
    )


def _sanitize_string(text: str) -> Any:
    trimmed = text.strip()
    if looks_like_xml(trimmed):
        try:
            parsed = parse_xml(trimmed)
        except (ET.ParseError, ValueError) as exc:
            logger.debug("Keeping XML-like string as text, parse failed: %s", exc)
        else:
            return sanitize_response(parsed)
    return trimmed or None


def sanitize_response(data: Any) -> Any:
    """Return a pruned copy of *data*, or ``None`` if nothing is left."""
    if isinstance(data, str):
        return _sanitize_string(data)

    if isinstance(data, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if _is_success_marker(key, value):
                continue
            cleaned = sanitize_response(value)
            if not _is_absent(cleaned):
                sanitized[key] = cleaned
        if len(sanitized) == 1 and TEXT_KEY in sanitized:
            return sanitized[TEXT_KEY]
        return sanitized or None

    if isinstance(data, (list, tuple)):
        items = [sanitize_response(item) for item in data]
        kept = [item for item in items if not _is_absent(item)]
        return kept or None

    return data
