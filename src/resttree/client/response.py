"""Default post-handlers of a :class:`~resttree.client.RequestClient`.

The client's post-handler chain starts as ``[decode_response, ensure_success]``:

1. :func:`decode_response` materializes the body according to the
   response ``content-type`` and wraps it in a
   :class:`~resttree.pipeline.ResponseEnvelope`.
2. :func:`ensure_success` unwraps the data for ``2xx`` statuses and raises
   :class:`~resttree.exceptions.HttpStatusError` otherwise.

Handlers appended after these receive the decoded data.
"""

from __future__ import annotations

from typing import Any, Optional

from resttree.client.stream import read_stream
from resttree.exceptions import HttpStatusError
from resttree.pipeline import RequestDescriptor, ResponseEnvelope


async def decode_response(response: Any, request: RequestDescriptor) -> ResponseEnvelope:
    """Decode the body of *response* according to its content type.

    * ``204`` -- an empty ``dict``, whatever the content type.
    * ``application/json`` -- the parsed JSON value.
    * ``text/*`` -- a ``str``.
    * ``application/octet-stream`` with a ``content-length`` -- a ``str``
      read incrementally, reporting progress to ``request.on_progress``.
    * anything else -- the raw ``bytes``.

    Args:
        response: The unread transport response.
        request: The request that produced it.

    Returns:
        A :class:`ResponseEnvelope` holding the response and decoded data.
    """
    if response.status_code == 204:
        await response.aclose()
        return ResponseEnvelope(response, {})

    content_type = response.headers.get("content-type") or ""
    if "application/json" in content_type:
        await response.aread()
        data = response.json()
    elif "text/" in content_type:
        await response.aread()
        data = response.text
    elif "application/octet-stream" in content_type and _content_length(response) is not None:
        data = await read_stream(response, _content_length(response), request.on_progress)
    else:
        await response.aread()
        data = response.content
    return ResponseEnvelope(response, data)


def ensure_success(envelope: ResponseEnvelope, request: RequestDescriptor) -> Any:
    """Return the decoded data for statuses in ``[200, 300)``, raise otherwise.

    Raises:
        HttpStatusError: Carrying the status and the decoded body.
    """
    status = envelope.response.status_code
    if 200 <= status < 300:
        return envelope.data
    raise HttpStatusError(status, envelope.data)


def _content_length(response: Any) -> Optional[int]:
    """Parse the ``content-length`` header, ``None`` when absent or malformed."""
    value = response.headers.get("content-length")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
