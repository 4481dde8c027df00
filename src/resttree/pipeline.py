"""Handler chains and the value types threaded through them.

Every call made through a :class:`~resttree.node.ResourceNode` passes through
three ordered chains:

* **pre-handlers** -- receive the :class:`RequestDescriptor` being built (and
  the original descriptor as read-only context) and return ``None`` or a
  ``dict`` patch.  Patches are merged by an explicit per-kind function:
  :func:`merge_request` on the client chain (``headers`` merged key-by-key)
  and :func:`replace_request` on node-local chains (every key replaces).
* **post-handlers** -- receive the current response value and the sent
  request; the return value becomes the running value.  The
  default client chain turns the raw response into a
  :class:`ResponseEnvelope` and then into the decoded data.
* **error handlers** -- receive the exception; the return value becomes the
  outcome of the call.  Raising aborts the chain and propagates to the caller.

Handlers run strictly one after another; a coroutine result is awaited
before the next handler starts.  :func:`run_handlers` implements that loop.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from resttree.utils import merge

Patch = Optional[Mapping[str, Any]]
"""What a pre-handler returns: ``None`` for "no change" or a partial descriptor."""

Handler = Callable[..., Union[Any, Awaitable[Any]]]
Reducer = Callable[[Any, Any], Any]

ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]


@dataclass
class FormData:
    """Multipart/form payload.

    Bodies of this type are sent as-is by the default pre-handler -- no JSON
    encoding, no ``Content-Type`` header -- so the transport can pick the
    multipart boundary.

    Attributes:
        data: Plain form fields.
        files: File fields, in any shape ``httpx`` accepts for ``files=``.
    """

    data: dict[str, Any] = field(default_factory=dict)
    files: dict[str, Any] = field(default_factory=dict)


@dataclass
class RequestDescriptor:
    """Everything needed to issue one request.

    Handlers never mutate a descriptor in place; they return a patch and the
    pipeline builds a new descriptor with :func:`merge_request` or
    :func:`replace_request`.

    Attributes:
        url: Relative fragment (as supplied by the caller) or absolute URL
            (once resolved by the node).
        method: HTTP method, e.g. ``"GET"``.
        params: Query parameters appended to the URL.
        body: Request payload: ``dict``/``list``/pydantic model (sent as
            JSON), :class:`FormData`, ``str`` or ``bytes``.
        headers: Request headers.
        signal: Cancellation handle (an :class:`asyncio.Event`) forwarded to
            the transport.
        on_progress: ``(received, total)`` callback used while streaming an
            octet-stream body.
        relative: The slash-normalized relative fragment, or ``None`` when
            the caller passed an absolute URL.
    """

    url: Optional[str] = None
    method: Optional[str] = None
    params: Optional[dict[str, Any]] = None
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    signal: Any = None
    on_progress: Optional[ProgressCallback] = None
    relative: Optional[str] = None

    @classmethod
    def coerce(
        cls,
        options: Union[RequestDescriptor, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> RequestDescriptor:
        """Build a descriptor from another descriptor, a mapping, or keywords.

        Keyword *fields* override entries of *options*.  Unknown field names
        raise :class:`TypeError`.
        """
        if isinstance(options, RequestDescriptor):
            return dataclasses.replace(options, **fields) if fields else options
        values = dict(options or {})
        values.update(fields)
        if values.get("headers") is None:
            values.pop("headers", None)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow ``dict`` of the descriptor's fields."""
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}


@dataclass
class ResponseEnvelope:
    """Raw response paired with its decoded body.

    Produced by the first default post-handler and consumed by the second,
    which checks the status and unwraps ``data``.
    """

    response: Any
    data: Any


@dataclass
class HandlerChains:
    """A full set of chains.

    Used by :class:`~resttree.node.ResourceNode` as ``overrides``: a node
    carrying a chain set sends its requests through these chains *instead
    of* the client's global ones.  A ``None`` chain falls back to the
    client's chain of the same kind.
    """

    prehandlers: Optional[list[Handler]] = None
    posthandlers: Optional[list[Handler]] = None
    errhandlers: Optional[list[Handler]] = None


def merge_request(request: RequestDescriptor, patch: Patch) -> RequestDescriptor:
    """Apply *patch* with ``headers`` merged key-by-key and every other key replaced."""
    if not patch:
        return request
    return RequestDescriptor(**merge(request.to_dict(), patch, ["headers"]))


def replace_request(request: RequestDescriptor, patch: Patch) -> RequestDescriptor:
    """Apply *patch* with every key, ``headers`` included, replaced wholesale."""
    if not patch:
        return request
    return dataclasses.replace(request, **patch)


def replace_value(value: Any, result: Any) -> Any:
    """Default reducer: the handler result becomes the new value."""
    return result


async def run_handlers(
    handlers: Sequence[Handler],
    value: Any,
    *context: Any,
    reducer: Reducer = replace_value,
) -> Any:
    """Run *handlers* in order over *value*.

    Each handler is called as ``handler(value, *context)``.  Its result is
    awaited when it is awaitable, then folded into the running value with
    *reducer*.  Any exception aborts the chain and propagates unchanged.

    Args:
        handlers: Ordered handler list.  Empty means *value* is returned as-is.
        value: Seed value.
        *context: Read-only extra arguments passed to every handler.
        reducer: ``(value, result) -> new value``.

    Returns:
        The value produced by the last handler.
    """
    for handler in handlers:
        result = handler(value, *context)
        if inspect.isawaitable(result):
            result = await result
        value = reducer(value, result)
    return value
