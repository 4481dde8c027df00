"""Request client module for resttree.

Provides the root configuration holder and request executor, its default
handlers, and the default ``httpx``-backed transport.

Classes:
    :class:`RequestClient` -- owns the options, the global handler chains
    and the root :class:`~resttree.node.ResourceNode`.
    :class:`HttpxTransport` -- transport collaborator over
    :class:`httpx.AsyncClient`.

Example::

    from resttree.client import create_client

    async with create_client("https://api.example.com") as api:
        items = await api.model("items").get()
"""

from resttree.client.rest_client import RequestClient, create_client
from resttree.client.transport import HttpxTransport, Transport

__all__ = ["RequestClient", "create_client", "HttpxTransport", "Transport"]
