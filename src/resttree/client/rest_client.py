"""Root of a resttree API: configuration, global handler chains, dispatch.

:class:`RequestClient` holds the immutable :class:`~resttree.models.ClientOptions`,
the three global handler chains and exactly one root
:class:`~resttree.node.ResourceNode`.  Nodes hand their resolved requests to
:meth:`RequestClient._request`, which runs:

1. :meth:`_prepare_request` -- canonical descriptor, default headers under
   call headers, then the pre-handler chain (``headers`` merged key-by-key);
2. :meth:`_fetch` -- transport defaults plus request fields, query string,
   transport call;
3. the post-handler chain over ``(response, request)``;

and funnels any exception from those stages into the error-handler chain.
The fetched response is closed once those chains have run, so handlers
must read any body they need before returning.
A node with ``overrides`` replaces the global chains for its requests.

Example::

    api = create_client("https://api.example.com/v1")
    users = api.model("users", ":id")

    async with api:
        user = await users.fill({"id": 42}).get()
        await api.model("users").post(None, {"name": "Ada"})
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from resttree.client.response import decode_response, ensure_success
from resttree.client.transport import HttpxTransport, Transport
from resttree.exceptions import ConfigError
from resttree.models import ClientOptions, MethodSpec
from resttree.node import ResourceNode
from resttree.pipeline import (
    FormData,
    Handler,
    HandlerChains,
    Patch,
    RequestDescriptor,
    merge_request,
    run_handlers,
)
from resttree.utils import to_query_string

logger = logging.getLogger(__name__)

_FETCH_KEYS = ("method", "headers", "body", "signal", "on_progress")


def encode_body(request: RequestDescriptor, original: RequestDescriptor) -> Patch:
    """Default pre-handler: send structured bodies as JSON.

    ``dict``, ``list`` and ``tuple`` bodies and pydantic models are
    serialized and ``Content-Type: application/json`` is set.
    :class:`~resttree.pipeline.FormData` and raw ``str``/``bytes`` bodies are
    left untouched.
    """
    body = request.body
    if body is None or isinstance(body, FormData):
        return None
    if isinstance(body, BaseModel):
        payload = body.model_dump_json()
    elif isinstance(body, (Mapping, list, tuple)):
        payload = json.dumps(body)
    else:
        return None
    return {"headers": {"Content-Type": "application/json"}, "body": payload}


def reraise(error: BaseException) -> Any:
    """Default error handler: propagate the failure to the caller unchanged."""
    raise error


class RequestClient:
    """Configuration holder and request executor of one API.

    Args:
        options: A :class:`~resttree.models.ClientOptions` or a mapping
            with the same keys (``root``, ``config``, ``headers``,
            ``methods``).
        transport: Coroutine callable ``(url, init) -> response``.  Defaults
            to an :class:`~resttree.client.transport.HttpxTransport` owned
            (and closed) by this client.

    Raises:
        ConfigError: If *options* fails validation.

    Attributes:
        options: The validated, frozen options.
        prehandlers: Global pre-handler chain, ``[encode_body]`` initially.
        posthandlers: Global post-handler chain,
            ``[decode_response, ensure_success]`` initially.
        errhandlers: Global error chain, ``[reraise]`` initially.
        root: The root :class:`~resttree.node.ResourceNode` (empty path).

    Verbs of the registry (``get``, ``post``, ...) are available directly on
    the client and act on :attr:`root`.
    """

    def __init__(
        self,
        options: Union[ClientOptions, Mapping[str, Any], None] = None,
        *,
        transport: Optional[Transport] = None,
    ) -> None:
        if isinstance(options, ClientOptions):
            self.options = options
        else:
            try:
                self.options = ClientOptions.model_validate(dict(options or {}))
            except ValidationError as exc:
                raise ConfigError(f"Invalid client options: {exc}") from exc

        self._transport = transport
        self._owns_transport = transport is None

        self.prehandlers: list[Handler] = [encode_body]
        self.posthandlers: list[Handler] = [decode_response, ensure_success]
        self.errhandlers: list[Handler] = [reraise]
        self.root = ResourceNode(self)

    # ------------------------------------------------------------------ #
    # Configuration accessors
    # ------------------------------------------------------------------ #

    @property
    def root_url(self) -> str:
        """Base URL without trailing slash."""
        return self.options.root

    @property
    def methods(self) -> dict[str, MethodSpec]:
        """The verb registry."""
        return self.options.methods

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpxTransport()
        return self._transport

    # ------------------------------------------------------------------ #
    # Root node shortcuts
    # ------------------------------------------------------------------ #

    def model(self, *parts: Optional[str]) -> ResourceNode:
        """Shortcut for ``client.root.model(*parts)``."""
        return self.root.model(*parts)

    async def request(
        self,
        options: Union[RequestDescriptor, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> Any:
        """Shortcut for ``client.root.request(...)``."""
        return await self.root.request(options, **fields)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not found normally: bound verbs.
        options = self.__dict__.get("options")
        if options is not None and name in options.methods:
            return getattr(self.root, name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the default transport if this client created one."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # Request executor
    # ------------------------------------------------------------------ #

    def _chains(self, overrides: Optional[HandlerChains]) -> tuple[list[Handler], list[Handler], list[Handler]]:
        """Effective (pre, post, err) chains: override chains win when set."""
        pre, post, err = self.prehandlers, self.posthandlers, self.errhandlers
        if overrides is not None:
            pre = overrides.prehandlers if overrides.prehandlers is not None else pre
            post = overrides.posthandlers if overrides.posthandlers is not None else post
            err = overrides.errhandlers if overrides.errhandlers is not None else err
        return pre, post, err

    async def _prepare_request(
        self,
        options: RequestDescriptor,
        overrides: Optional[HandlerChains] = None,
    ) -> RequestDescriptor:
        """Build the canonical descriptor and run the pre-handler chain over it."""
        request = RequestDescriptor(
            url=options.url,
            method=options.method,
            params=options.params,
            body=options.body,
            headers={**self.options.headers, **(options.headers or {})},
            signal=options.signal,
            on_progress=options.on_progress,
            relative=options.relative,
        )
        prehandlers, _, _ = self._chains(overrides)
        return await run_handlers(prehandlers, request, request, reducer=merge_request)

    async def _fetch(self, request: RequestDescriptor) -> Any:
        """Invoke the transport with client defaults overlaid by the request fields."""
        init: dict[str, Any] = dict(self.options.config)
        for key in _FETCH_KEYS:
            value = getattr(request, key)
            if value is not None:
                init[key] = value
        url = (request.url or "") + to_query_string(request.params)
        logger.debug("%s %s", request.method, url)
        return await self.transport(url, init)

    async def _request(
        self,
        options: RequestDescriptor,
        overrides: Optional[HandlerChains] = None,
    ) -> Any:
        """Prepare, fetch and post-process one request; failures go to the error chain."""
        _, posthandlers, errhandlers = self._chains(overrides)
        response = None
        try:
            request = await self._prepare_request(options, overrides)
            response = await self._fetch(request)
            return await run_handlers(posthandlers, response, request)
        except Exception as exc:
            logger.debug("%s %s failed: %r", options.method, options.url, exc)
            return await run_handlers(errhandlers, exc)
        finally:
            if response is not None:
                await _release(response)


async def _release(response: Any) -> None:
    """Close a streamed response the post chain left open."""
    if getattr(response, "is_closed", True):
        return
    await response.aclose()


def create_client(
    root: str = "",
    *,
    headers: Optional[Mapping[str, str]] = None,
    config: Optional[Mapping[str, Any]] = None,
    methods: Optional[Mapping[str, Union[MethodSpec, Mapping[str, Any]]]] = None,
    transport: Optional[Transport] = None,
) -> RequestClient:
    """Build a :class:`RequestClient` from keyword options.

    Args:
        root: Base URL of the API.
        headers: Default request headers.
        config: Transport defaults (e.g. ``{"timeout": 10}``).
        methods: Extra or replacement verb registry entries.
        transport: Custom transport collaborator.

    Raises:
        ConfigError: If the options fail validation.
    """
    options = {
        "root": root,
        "headers": dict(headers or {}),
        "config": dict(config or {}),
        "methods": dict(methods or {}),
    }
    return RequestClient(options, transport=transport)
