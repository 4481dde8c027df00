"""Pydantic configuration models for resttree.

* :class:`MethodSpec` -- one entry of the verb registry: which HTTP method a
  bound verb sends and how its positional arguments are unpacked.
* :class:`ClientOptions` -- everything a :class:`~resttree.client.RequestClient`
  is constructed from.  Frozen: a client's configuration never changes after
  construction, so nodes and concurrent requests can share it freely.

Example::

    ClientOptions(
        root="https://api.example.com/v1/",
        headers={"Accept": "application/json"},
        methods={"head": {"method": "HEAD", "args": ["url", "params"]}},
    )
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ARGS_WITHOUT_BODY: tuple[str, ...] = ("url", "params")
ARGS_WITH_BODY: tuple[str, ...] = ("url", "body", "params")

_ALLOWED_ARGS = (ARGS_WITHOUT_BODY, ARGS_WITH_BODY)


class MethodSpec(BaseModel):
    """Verb registry entry.

    Attributes:
        method: HTTP method sent on the wire (upper-cased on validation).
        args: Positional argument order of the bound verb: either
            ``("url", "params")`` or ``("url", "body", "params")``.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    args: tuple[str, ...] = ARGS_WITHOUT_BODY

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        if not value:
            raise ValueError("HTTP method cannot be empty")
        return value.upper()

    @field_validator("args")
    @classmethod
    def _known_args(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if tuple(value) not in _ALLOWED_ARGS:
            raise ValueError(
                f"args must be one of {list(ARGS_WITHOUT_BODY)} or {list(ARGS_WITH_BODY)}, "
                f"got {list(value)}"
            )
        return tuple(value)


DEFAULT_METHODS: dict[str, MethodSpec] = {
    "get": MethodSpec(method="GET", args=ARGS_WITHOUT_BODY),
    "post": MethodSpec(method="POST", args=ARGS_WITH_BODY),
    "put": MethodSpec(method="PUT", args=ARGS_WITH_BODY),
    "patch": MethodSpec(method="PATCH", args=ARGS_WITH_BODY),
    "delete": MethodSpec(method="DELETE", args=ARGS_WITHOUT_BODY),
}
DEFAULT_METHODS["remove"] = DEFAULT_METHODS["delete"]


class ClientOptions(BaseModel):
    """Construction options of a :class:`~resttree.client.RequestClient`.

    Attributes:
        root: Base URL prepended to every relative request path.  A single
            trailing slash is stripped.
        config: Transport defaults copied into every transport call before
            the per-request fields are overlaid (e.g. ``timeout``).
        headers: Default headers; call-supplied headers win on conflict.
        methods: Verb registry.  Entries given here are added to, or
            replace, the default ``get/post/put/patch/delete/remove`` set.
    """

    model_config = ConfigDict(frozen=True)

    root: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    methods: dict[str, MethodSpec] = Field(default_factory=lambda: dict(DEFAULT_METHODS))

    @field_validator("root", mode="before")
    @classmethod
    def _strip_root(cls, value: Any) -> str:
        value = value or ""
        if not isinstance(value, str):
            raise ValueError(f"root must be a string, got {type(value).__name__}")
        return value[:-1] if value.endswith("/") else value

    @field_validator("config", "headers", "methods", mode="before")
    @classmethod
    def _default_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("methods", mode="after")
    @classmethod
    def _merge_methods(cls, value: dict[str, MethodSpec]) -> dict[str, MethodSpec]:
        return {**DEFAULT_METHODS, **value}
