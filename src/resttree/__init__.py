"""resttree -- declarative REST clients built from a tree of resource paths.

Given a base URL, :func:`create_client` returns a client whose
:meth:`~resttree.client.RequestClient.model` method derives resource nodes.
Nodes carry ``:name`` placeholders resolved at call time with
:meth:`~resttree.node.ResourceNode.fill`, expose one coroutine per HTTP verb,
and send every call through ordered pre-request, post-response and error
handler chains.

Typical use::

    from resttree import create_client

    api = create_client("https://api.example.com/v1", headers={"X-Token": "..."})
    user = api.model("users", ":id")

    async with api:
        data = await user.fill(id=7).get()
        await api.model("users").post(None, {"name": "Ada"})

Modules:
    client: Request executor, default handlers and transport.
    node: Resource tree nodes.
    path: Path templates and placeholder substitution.
    pipeline: Handler chains and the values threaded through them.
    models: Pydantic configuration models.
    config: Option resolution from files and environment.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Command-line front end.
"""

__version__ = "0.1.0"

from resttree.client import HttpxTransport, RequestClient, create_client  # noqa: E402
from resttree.exceptions import (  # noqa: E402
    AbstractModelError,
    ConfigError,
    HttpStatusError,
    InvalidPathError,
    RequestAbortedError,
    ResttreeError,
    StreamError,
    TransportError,
)
from resttree.models import ClientOptions, MethodSpec  # noqa: E402
from resttree.node import ResourceNode  # noqa: E402
from resttree.path import PathTemplate  # noqa: E402
from resttree.pipeline import (  # noqa: E402
    FormData,
    HandlerChains,
    RequestDescriptor,
    ResponseEnvelope,
    run_handlers,
)

__all__ = [
    "__version__",
    "AbstractModelError",
    "ClientOptions",
    "ConfigError",
    "FormData",
    "HandlerChains",
    "HttpStatusError",
    "HttpxTransport",
    "InvalidPathError",
    "MethodSpec",
    "PathTemplate",
    "RequestAbortedError",
    "RequestClient",
    "RequestDescriptor",
    "ResourceNode",
    "ResponseEnvelope",
    "ResttreeError",
    "StreamError",
    "TransportError",
    "create_client",
    "run_handlers",
]
