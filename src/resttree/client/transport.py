"""Default transport collaborator backed by :class:`httpx.AsyncClient`.

A transport is any coroutine callable ``(url, init) -> response`` where
``init`` is a plain ``dict`` carrying ``method``, ``headers``, ``body`` and
``signal`` plus whatever transport defaults the client was configured with.
:class:`HttpxTransport` is the one the client uses when none is supplied.

The response is returned *unread* (``httpx`` streaming mode) so the default
post-handlers can either read it in one go or stream it with progress
reporting.

Recognised ``init`` keys beyond the request fields:

* ``timeout``, ``cookies``, ``extensions`` -- forwarded to
  :meth:`httpx.AsyncClient.build_request`;
* ``follow_redirects``, ``auth`` -- forwarded to
  :meth:`httpx.AsyncClient.send`.

``on_progress`` is consumed by the body decoder, not the transport.  Other
keys are logged and ignored.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx

from resttree.exceptions import RequestAbortedError, TransportError
from resttree.pipeline import FormData

logger = logging.getLogger(__name__)

Transport = Callable[[str, dict[str, Any]], Awaitable[Any]]

_REQUEST_KEYS = ("method", "headers", "body", "signal", "on_progress")
_BUILD_KEYS = ("timeout", "cookies", "extensions")
_SEND_KEYS = ("follow_redirects", "auth")


class HttpxTransport:
    """Send requests through a lazily created :class:`httpx.AsyncClient`.

    Args:
        client: An existing client to send through.  When given, the
            transport never closes it.
        **client_kwargs: Keyword arguments for the
            :class:`httpx.AsyncClient` created on first use (e.g.
            ``verify=False`` or ``transport=httpx.MockTransport(...)``).

    Example::

        async with HttpxTransport(timeout=10) as transport:
            response = await transport("https://api.example.com/users", {"method": "GET"})
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, **client_kwargs: Any) -> None:
        self._client = client
        self._owns_client = client is None
        self._client_kwargs = client_kwargs

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport call
    # ------------------------------------------------------------------ #

    async def __call__(self, url: str, init: dict[str, Any]) -> httpx.Response:
        """Send one request and return the unread response.

        Raises:
            RequestAbortedError: If ``init["signal"]`` is set before the
                response headers arrive.
            TransportError: On network / timeout errors.
        """
        client = self._ensure_client()

        build_kwargs: dict[str, Any] = {"headers": init.get("headers")}
        build_kwargs.update(_encode_body(init.get("body")))
        send_kwargs: dict[str, Any] = {}
        for key, value in init.items():
            if key in _BUILD_KEYS:
                build_kwargs[key] = value
            elif key in _SEND_KEYS:
                send_kwargs[key] = value
            elif key not in _REQUEST_KEYS:
                logger.warning("Ignoring unsupported transport option %r", key)

        method = init.get("method") or "GET"
        try:
            request = client.build_request(method, url, **build_kwargs)
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid request URL {url!r}: {exc}") from exc

        signal = init.get("signal")
        if signal is not None and signal.is_set():
            raise RequestAbortedError(f"{method} {url} aborted before it was sent")

        logger.debug("Sending %s %s", method, request.url)
        try:
            return await _send_until_aborted(
                client.send(request, stream=True, **send_kwargs), signal
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(**self._client_kwargs)
        return self._client


async def _send_until_aborted(send: Awaitable[httpx.Response], signal: Any) -> httpx.Response:
    """Await *send*, giving up as soon as the cancellation *signal* is set."""
    if signal is None:
        return await send

    send_task = asyncio.ensure_future(send)
    abort_task = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait(
            {send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        send_task.cancel()
        raise
    finally:
        abort_task.cancel()

    if send_task in done:
        return send_task.result()

    send_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await send_task
    raise RequestAbortedError("Request aborted by signal")


def _encode_body(body: Any) -> dict[str, Any]:
    """Map a request body onto ``httpx`` request-building keyword arguments."""
    if body is None:
        return {}
    if isinstance(body, FormData):
        if body.files:
            return {"data": body.data or None, "files": body.files}
        # httpx only switches to multipart when ``files`` is non-empty.
        return {"files": {name: (None, _form_value(value)) for name, value in body.data.items()}}
    return {"content": body}


def _form_value(value: Any) -> Any:
    return value if isinstance(value, (str, bytes)) else str(value)
