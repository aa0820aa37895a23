"""Convert XML documents embedded in API payloads into plain mappings.

OpenDART returns some report bodies as XML text inside otherwise-JSON
responses. :func:`parse_xml` turns such a document into nested ``dict``
values so the sanitizer can prune and flatten it like any other payload.

Mapping rules:

* The result has a single key, the root element's tag.
* Attributes appear under :data:`ATTRIBUTE_PREFIX` + name (``@_id``).
* An element with neither attributes nor children becomes its trimmed
  text (``""`` when empty).
* Otherwise the element becomes a ``dict``; its own text, if any, is kept
  under :data:`TEXT_KEY`.
* Repeated child tags collapse into a list in document order.
* Namespaces are dropped from tag names (``{urn:x}item`` -> ``item``).

Text is never converted to numbers, so codes such as ``005930`` keep their
leading zeros.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

ATTRIBUTE_PREFIX = "@_"
TEXT_KEY = "#text"


def looks_like_xml(text: str) -> bool:
    """Heuristic check: *text* starts with ``<`` and ends with ``>``.

    This is a best-effort detector, not a guarantee that *text* parses.
    """
    return text.startswith("<") and text.endswith(">")


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    node: dict[str, Any] = {}
    for name, value in element.attrib.items():
        node[ATTRIBUTE_PREFIX + _local_name(name)] = value.strip()

    text_parts = [(element.text or "").strip()]
    for child in children:
        tag = _local_name(child.tag)
        value = _element_to_value(child)
        if tag not in node:
            node[tag] = value
        elif isinstance(node[tag], list):
            node[tag].append(value)
        else:
            node[tag] = [node[tag], value]
        text_parts.append((child.tail or "").strip())

    text = " ".join(part for part in text_parts if part)
    if text:
        node[TEXT_KEY] = text
    return node


def parse_xml(text: str) -> dict[str, Any]:
    """Parse an XML document into ``{root_tag: value}``.

    The document is always decoded as UTF-8, whatever its declaration says,
    because it arrives here as an already-decoded ``str``.

    Raises:
        xml.etree.ElementTree.ParseError: If *text* is not well-formed XML.
    """
    parser = ET.XMLParser(encoding="utf-8")
    root = ET.fromstring(text.encode("utf-8"), parser=parser)
    return {_local_name(root.tag): _element_to_value(root)}
