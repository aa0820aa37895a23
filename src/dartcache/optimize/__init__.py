"""Response normalization for dartcache.

Pure functions that shrink deserialized API payloads before they reach a
consumer:

* :func:`factor_common_fields` -- move fields shared by every ``list`` row
  into a ``common`` object.
* :func:`sanitize_response` -- prune empty values and success markers, and
  expand embedded XML documents.
* :func:`optimize_response` -- both, in that order.

None of them perform I/O or keep state, so they are safe to call from any
thread.
"""

from dartcache.optimize.factor import factor_common_fields
from dartcache.optimize.pipeline import optimize_response
from dartcache.optimize.sanitize import SUCCESS_MESSAGE, SUCCESS_STATUS, sanitize_response
from dartcache.optimize.xml import ATTRIBUTE_PREFIX, TEXT_KEY, parse_xml

__all__ = [
    "ATTRIBUTE_PREFIX",
    "SUCCESS_MESSAGE",
    "SUCCESS_STATUS",
    "TEXT_KEY",
    "factor_common_fields",
    "optimize_response",
    "parse_xml",
    "sanitize_response",
]
