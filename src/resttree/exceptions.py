"""Exception hierarchy for resttree.

All exceptions inherit from :class:`ResttreeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`resttree.exit_codes`.
Library callers catch the specific subclasses; the command-line entry point
in :func:`resttree.app.main` catches ``ResttreeError`` and exits with the
matching code.

Subclass hierarchy::

    ResttreeError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- InvalidPathError     (exit 3)
    +-- AbstractModelError   (exit 4)
    +-- HttpStatusError      (exit 5)
    +-- TransportError       (exit 6)
    |   +-- RequestAbortedError
    +-- StreamError          (exit 7)
    +-- ConfigError          (exit 1)
"""

from __future__ import annotations

from typing import Any

from resttree.exit_codes import (
    EXIT_ABSTRACT_MODEL,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_STATUS,
    EXIT_INVALID_PATH,
    EXIT_INVALID_USAGE,
    EXIT_STREAM_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class ResttreeError(Exception):
    """Base exception for all resttree errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`resttree.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ResttreeError):
    """Raised for invalid CLI arguments (malformed ``key=value`` pairs, bad verbs)."""

    exit_code = EXIT_INVALID_USAGE


class InvalidPathError(ResttreeError):
    """Raised when a resource path is malformed or repeats a placeholder name.

    Raised while a node is being constructed; nodes that already exist are
    never affected.
    """

    exit_code = EXIT_INVALID_PATH


class AbstractModelError(ResttreeError):
    """Raised when a request is issued on a node whose placeholders are unresolved.

    Attributes:
        parameters: Names of the placeholders still waiting for a value.
    """

    exit_code = EXIT_ABSTRACT_MODEL

    def __init__(self, parameters: frozenset[str] | set[str]):
        self.parameters = frozenset(parameters)
        names = ", ".join(sorted(self.parameters))
        super().__init__(f"Abstract model cannot be requested (unresolved: {names})")


class HttpStatusError(ResttreeError):
    """Raised by the default response pipeline for any status outside ``[200, 300)``.

    Attributes:
        status: The HTTP status code of the response.
        data: The already-decoded response body (JSON object, text, or bytes).
    """

    exit_code = EXIT_HTTP_STATUS

    def __init__(self, status: int, data: Any = None):
        self.status = status
        self.data = data
        super().__init__(f"HTTP {status}")


class TransportError(ResttreeError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_TRANSPORT_ERROR


class RequestAbortedError(TransportError):
    """Raised when the caller's cancellation handle fires before the response arrives."""


class StreamError(ResttreeError):
    """Raised when a response body stream fails part-way through."""

    exit_code = EXIT_STREAM_ERROR


class ConfigError(ResttreeError):
    """Raised for configuration problems (invalid JSON, unknown verb argument orders)."""

    exit_code = EXIT_GENERIC_FAILURE
