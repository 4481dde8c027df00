"""Path templates with ``:name`` placeholders.

A :class:`PathTemplate` normalizes a resource path (leading/trailing and
repeated slashes are dropped, so ``"users//:id/"`` becomes ``"/users/:id"``)
and records the names of its placeholder segments.  A segment is a
placeholder when it starts with ``:``; the rest of the segment is the
parameter name.

Filling is deliberately partial: :meth:`PathTemplate.fill` substitutes only
the names present (and not ``None``) in the supplied data, leaving the other
placeholders literally in the path.  The resulting template still reports
those names in :attr:`PathTemplate.parameters`, so a node built from it stays
abstract until a later fill resolves them.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from resttree.exceptions import InvalidPathError
from resttree.utils import encode_component

PLACEHOLDER_MARK = ":"

_RE_PLACEHOLDER = re.compile(r"/:([^/]*)")


class PathTemplate:
    """A normalized resource path and the placeholder names it declares.

    Args:
        path: Raw path string, e.g. ``"/users/:id/posts"``.  ``None`` or an
            empty string yields the root template (``path == ""``).

    Attributes:
        path: Normalized path, ``""`` or ``"/seg/seg..."``.
        segments: The normalized segments.
        parameters: Names of the placeholders in :attr:`path`.

    Raises:
        InvalidPathError: If a placeholder has no name or the same
            placeholder name appears twice.

    Example::

        >>> t = PathTemplate("/users/:id/")
        >>> t.path, sorted(t.parameters)
        ('/users/:id', ['id'])
        >>> t.fill({"id": "a b"}).path
        '/users/a%20b'
    """

    __slots__ = ("path", "segments", "parameters")

    def __init__(self, path: Optional[str] = None) -> None:
        segments = tuple(seg for seg in (path or "").split("/") if seg)
        names: list[str] = []
        for seg in segments:
            if seg.startswith(PLACEHOLDER_MARK):
                name = seg[len(PLACEHOLDER_MARK):]
                if not name:
                    raise InvalidPathError(f"Invalid path {path!r}: placeholder without a name")
                if name in names:
                    raise InvalidPathError(
                        f'Invalid path {path!r}: parameter "{name}" already exists'
                    )
                names.append(name)

        self.segments = segments
        self.path = "/" + "/".join(segments) if segments else ""
        self.parameters = frozenset(names)

    @property
    def is_abstract(self) -> bool:
        """``True`` while at least one placeholder is unresolved."""
        return bool(self.parameters)

    def child(self, *parts: Optional[str]) -> PathTemplate:
        """Return the template for this path followed by *parts*.

        Empty and ``None`` parts are skipped, so ``child("a", "", "b")`` and
        ``child("a").child("b")`` produce the same path.
        """
        suffix = "/".join(part for part in parts if part)
        return PathTemplate(f"{self.path}/{suffix}" if suffix else self.path)

    def fill(self, data: Mapping[str, Any]) -> PathTemplate:
        """Substitute the placeholders named in *data*.

        Each ``/:name`` whose value in *data* is present and not ``None`` is
        replaced by ``/`` plus the percent-encoded value.  Missing names are
        left in place.
        """

        def _substitute(match: re.Match[str]) -> str:
            value = data.get(match.group(1))
            if value is None:
                return match.group(0)
            return "/" + encode_component(value)

        return PathTemplate(_RE_PLACEHOLDER.sub(_substitute, self.path))

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"PathTemplate({self.path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathTemplate):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)
