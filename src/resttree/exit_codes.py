"""Numeric process exit codes used by the ``resttree`` command-line front end.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~resttree.exceptions.ResttreeError` subclass.
Shell wrappers can inspect the exit code to tell a rejected path template
from an HTTP failure without parsing stderr.

Example::

    $ resttree request get /users/:id
    $ echo $?
    4   # EXIT_ABSTRACT_MODEL -- the ``:id`` placeholder was never filled
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_INVALID_PATH = 3
"""A resource path was malformed or declared the same placeholder twice."""

EXIT_ABSTRACT_MODEL = 4
"""A request was issued against a path with unresolved placeholders."""

EXIT_HTTP_STATUS = 5
"""The remote API answered with a status outside ``[200, 300)``."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, abort)."""

EXIT_STREAM_ERROR = 7
"""The response body stream failed while it was being read."""
