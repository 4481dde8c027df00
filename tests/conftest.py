"""Shared test fixtures for resttree.

Provides a recording fake transport, client factories wired to it, an
isolated configuration environment, and output-state management.  These
fixtures are discovered by pytest and available to all test modules without
explicit imports.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from resttree.client import RequestClient
from resttree.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at creation
    time; CliRunner swaps those streams, so a stale manager would write to a
    closed file.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


class RecordingTransport:
    """Transport collaborator that records every call.

    Each call is stored as ``(url, init)`` in :attr:`calls` and answered by
    *responder*, which receives the same arguments and returns an
    :class:`httpx.Response` (or raises).
    """

    def __init__(self, responder: Callable[[str, dict[str, Any]], httpx.Response] | None = None):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._responder = responder or (lambda url, init: httpx.Response(200, json={"ok": True}))

    async def __call__(self, url: str, init: dict[str, Any]) -> httpx.Response:
        self.calls.append((url, dict(init)))
        return self._responder(url, init)

    @property
    def last_url(self) -> str:
        return self.calls[-1][0]

    @property
    def last_init(self) -> dict[str, Any]:
        return self.calls[-1][1]


@pytest.fixture
def transport() -> RecordingTransport:
    """A recording transport answering ``200 {"ok": true}``."""
    return RecordingTransport()


@pytest.fixture
def client(transport: RecordingTransport) -> RequestClient:
    """A client rooted at ``https://api.example.com/v1`` using :func:`transport`."""
    return RequestClient({"root": "https://api.example.com/v1/"}, transport=transport)


@pytest.fixture
def make_client() -> Callable[..., tuple[RequestClient, RecordingTransport]]:
    """Factory building a client around a responder function.

    Usage::

        client, transport = make_client(lambda url, init: httpx.Response(204))
    """

    def _make(
        responder: Callable[[str, dict[str, Any]], httpx.Response] | None = None,
        **options: Any,
    ) -> tuple[RequestClient, RecordingTransport]:
        recorder = RecordingTransport(responder)
        options.setdefault("root", "https://api.example.com")
        return RequestClient(options, transport=recorder), recorder

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME into tmp_path, forces the XDG
    layout, clears RESTTREE_* variables and changes into tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("resttree.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("RESTTREE_ROOT", "RESTTREE_HEADERS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
