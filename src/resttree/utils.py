"""Small collaborators shared by the request pipeline.

* :func:`merge` -- one-level merge of a patch mapping over a target mapping,
  with selected keys merged key-by-key instead of replaced.
* :func:`to_query_string` -- encodes a params mapping as ``?a=1&b=2``.
* :func:`encode_component` -- percent-encodes a single path segment value.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional
from urllib.parse import quote

import httpx

# Characters left unescaped by a URI component encoder.
_COMPONENT_SAFE = "-_.!~*'()"


def merge(
    target: Mapping[str, Any],
    patch: Optional[Mapping[str, Any]],
    deep_keys: Iterable[str] = (),
) -> dict[str, Any]:
    """Return a new dict with *patch* laid over *target*.

    Keys named in *deep_keys* whose values are mappings on both sides are
    merged key-by-key; every other key in *patch* replaces the target value
    wholesale.  Neither argument is modified.

    Args:
        target: The base mapping.
        patch: The overriding mapping.  ``None`` or empty means no change.
        deep_keys: Keys merged one level deeper instead of replaced.

    Returns:
        A new ``dict``.

    Example::

        >>> merge({"headers": {"A": "1"}, "url": "/a"},
        ...       {"headers": {"B": "2"}, "url": "/b"}, ["headers"])
        {'headers': {'A': '1', 'B': '2'}, 'url': '/b'}
    """
    result = dict(target)
    if not patch:
        return result
    deep = set(deep_keys)
    for key, value in patch.items():
        current = result.get(key)
        if key in deep and isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = {**current, **value}
        else:
            result[key] = value
    return result


def to_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """Encode *params* as a query string with a leading ``?``.

    ``None`` values are dropped and sequences become repeated keys.  Empty or
    absent params produce ``""`` so the result can always be appended to a
    URL.

    Args:
        params: Mapping of query parameter names to scalar or list values.

    Returns:
        ``""`` or ``"?"`` followed by the encoded pairs.
    """
    if not params:
        return ""
    cleaned = {key: value for key, value in params.items() if value is not None}
    query = str(httpx.QueryParams(cleaned))
    return f"?{query}" if query else ""


def encode_component(value: Any) -> str:
    """Percent-encode *value* for use as a single path segment.

    Booleans are rendered lowercase (``true``/``false``) so they match what
    web APIs expect in a URL.
    """
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_COMPONENT_SAFE)
