"""Incremental body decoding with progress reporting.

:func:`read_stream` consumes an unread response body chunk by chunk,
decoding bytes to text and reporting ``(received, total)`` after every
chunk.  It is used by :func:`~resttree.client.response.decode_response` for
``application/octet-stream`` responses that announce a ``content-length``.

Two reading modes are supported, whichever the response exposes:

* async pull -- ``response.aiter_bytes()`` on a network stream;
* sync iteration -- ``response.iter_bytes()`` on an in-memory, synchronous
  stream (for responses built by hand or by a synchronous transport).
"""

from __future__ import annotations

import codecs
import inspect
import logging
from collections.abc import AsyncIterator, Iterator
from typing import Any, Optional

import httpx

from resttree.exceptions import StreamError
from resttree.pipeline import ProgressCallback

logger = logging.getLogger(__name__)


async def read_stream(
    response: Any,
    total: int,
    on_progress: Optional[ProgressCallback] = None,
    encoding: str = "utf-8",
) -> str:
    """Read the whole body of *response* as text, chunk by chunk.

    Args:
        response: An unread :class:`httpx.Response` (or anything exposing
            ``aiter_bytes()`` / ``iter_bytes()``).
        total: Expected body length in bytes, passed through to
            *on_progress*.
        on_progress: Optional ``(received, total)`` callback, sync or
            async, invoked after every chunk with the running byte count.
        encoding: Text encoding of the body.

    Returns:
        The concatenated decoded text.

    Raises:
        StreamError: If the underlying stream fails part-way through.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    parts: list[str] = []
    received = 0

    try:
        async for chunk in _chunks(response):
            received += len(chunk)
            if on_progress is not None:
                result = on_progress(received, total)
                if inspect.isawaitable(result):
                    await result
            parts.append(decoder.decode(chunk))
    except (httpx.StreamError, httpx.TransportError) as exc:
        raise StreamError(f"Stream failed after {received} of {total} bytes: {exc}") from exc

    parts.append(decoder.decode(b"", final=True))
    logger.debug("Streamed %d of %d bytes", received, total)
    return "".join(parts)


def _chunks(response: Any) -> AsyncIterator[bytes]:
    """Pick the reading mode the response supports."""
    stream = getattr(response, "stream", None)
    if isinstance(stream, httpx.SyncByteStream) and not isinstance(stream, httpx.AsyncByteStream):
        return _iterate(response.iter_bytes())
    return response.aiter_bytes()


async def _iterate(chunks: Iterator[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk
