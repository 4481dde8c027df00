"""Resource nodes: immutable handles on one point of a resource path tree.

A :class:`ResourceNode` couples a :class:`~resttree.path.PathTemplate` with
two local handler chains and exposes one bound method per registered verb.
Nodes are cheap and disposable:

* :meth:`ResourceNode.model` derives a child for a longer path, with empty
  local chains of its own;
* :meth:`ResourceNode.fill` derives a node with placeholders substituted,
  sharing the local chains of the node it was filled from;
* :meth:`ResourceNode.with_overrides` derives a node whose requests run
  through their own global chain set.

None of these mutate the node they are called on.  A node whose path still
contains placeholders is *abstract*: every request on it fails with
:class:`~resttree.exceptions.AbstractModelError`.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from resttree.exceptions import AbstractModelError
from resttree.models import MethodSpec
from resttree.path import PathTemplate
from resttree.pipeline import (
    Handler,
    HandlerChains,
    RequestDescriptor,
    replace_request,
    run_handlers,
)

if TYPE_CHECKING:
    from resttree.client.rest_client import RequestClient

_RE_ABSURL = re.compile(r"^[\w-]+:")


class ResourceNode:
    """One node of the resource tree.

    Args:
        client: The owning :class:`~resttree.client.RequestClient`.
        path: Raw path string or an already parsed
            :class:`~resttree.path.PathTemplate`.
        prehandlers: Local pre-handler chain, shared by reference.
        posthandlers: Local post-handler chain, shared by reference.
        overrides: Chain set replacing the client's global chains for
            requests made through this node.

    Raises:
        InvalidPathError: If *path* is malformed or repeats a placeholder.

    Example::

        posts = client.model("users/:user", "posts")
        await posts.fill(user="ada").get(None, {"page": 2})
        # GET {root}/users/ada/posts?page=2
    """

    def __init__(
        self,
        client: RequestClient,
        path: Union[str, PathTemplate, None] = None,
        *,
        prehandlers: Optional[list[Handler]] = None,
        posthandlers: Optional[list[Handler]] = None,
        overrides: Optional[HandlerChains] = None,
    ) -> None:
        self.client = client
        self.template = path if isinstance(path, PathTemplate) else PathTemplate(path)
        self.prehandlers: list[Handler] = prehandlers if prehandlers is not None else []
        self.posthandlers: list[Handler] = posthandlers if posthandlers is not None else []
        self.overrides = overrides

    @property
    def path(self) -> str:
        """Normalized path of this node, ``""`` for the root."""
        return self.template.path

    @property
    def parameters(self) -> frozenset[str]:
        """Names of the placeholders still unresolved in :attr:`path`."""
        return self.template.parameters

    @property
    def is_abstract(self) -> bool:
        return self.template.is_abstract

    # ------------------------------------------------------------------ #
    # Derivation
    # ------------------------------------------------------------------ #

    def model(self, *parts: Optional[str]) -> ResourceNode:
        """Return a child node for this path followed by *parts*.

        The child starts with its own, empty local chains.
        """
        return ResourceNode(self.client, self.template.child(*parts))

    def fill(self, data: Optional[Mapping[str, Any]] = None, **values: Any) -> ResourceNode:
        """Return a node with the placeholders named in *data* substituted.

        Names missing from *data* (or mapped to ``None``) stay in the path,
        so the returned node remains abstract for them.  Local chains are
        shared by reference; ``overrides`` are not carried over.
        """
        merged = {**(data or {}), **values}
        return ResourceNode(
            self.client,
            self.template.fill(merged),
            prehandlers=self.prehandlers,
            posthandlers=self.posthandlers,
        )

    def with_overrides(self, overrides: Optional[HandlerChains]) -> ResourceNode:
        """Return a node on the same path whose requests use *overrides*."""
        return ResourceNode(
            self.client,
            self.template,
            prehandlers=self.prehandlers,
            posthandlers=self.posthandlers,
            overrides=overrides,
        )

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not found normally: bound verbs.
        client = self.__dict__.get("client")
        if client is not None:
            spec = client.methods.get(name)
            if spec is not None:
                return self._bind_verb(name, spec)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def _bind_verb(self, name: str, spec: MethodSpec) -> Callable[..., Any]:
        def verb(*args: Any, **options: Any) -> Any:
            if len(args) > len(spec.args):
                raise TypeError(
                    f"{name}() takes at most {len(spec.args)} positional arguments "
                    f"({', '.join(spec.args)}), got {len(args)}"
                )
            fields = {key: value for key, value in zip(spec.args, args) if value is not None}
            fields.update((key, value) for key, value in options.items() if value is not None)
            fields["method"] = spec.method
            return self.request(fields)

        verb.__name__ = name
        verb.__qualname__ = f"{type(self).__name__}.{name}"
        return verb

    # ------------------------------------------------------------------ #
    # Request
    # ------------------------------------------------------------------ #

    async def request(
        self,
        options: Union[RequestDescriptor, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> Any:
        """Issue a request relative to this node.

        Runs the local pre-handlers (each patch replaces keys wholesale),
        resolves the URL, delegates to the client's executor and runs the
        local post-handlers over the result.

        An absolute ``url`` (``scheme:...``) is used verbatim and
        ``relative`` is cleared; otherwise the URL becomes
        ``root + node path + "/" + url`` and the slash-prefixed fragment is
        kept in ``relative``.

        Raises:
            AbstractModelError: If the path still has unresolved placeholders.
        """
        if self.parameters:
            raise AbstractModelError(self.parameters)

        original = RequestDescriptor.coerce(options, **fields)
        request = await run_handlers(self.prehandlers, original, original, reducer=replace_request)

        url = request.url or ""
        if _RE_ABSURL.match(url):
            request = dataclasses.replace(request, url=url, relative=None)
        else:
            if url and not url.startswith("/"):
                url = "/" + url
            request = dataclasses.replace(
                request, url=self.client.root_url + self.path + url, relative=url
            )

        result = await self.client._request(request, self.overrides)
        return await run_handlers(self.posthandlers, result, request)

    def __repr__(self) -> str:
        return f"ResourceNode({self.path!r})"
