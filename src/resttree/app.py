"""Typer application and CLI entry point for resttree.

The command line is a thin front end over the library: ``resttree request``
resolves client options (see :mod:`resttree.config`), models the given path,
fills its placeholders from ``--fill`` pairs and calls the verb, printing the
decoded body through :mod:`resttree.output`.

Example::

    $ resttree request get /users/:id --root https://api.example.com -f id=7
    $ resttree request post /users -d '{"name": "Ada"}'
    $ resttree config show

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from resttree import __version__
from resttree.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="resttree",
    help="Call REST APIs through a declarative resource tree.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect resolved client options.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"resttree {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress non-essential output."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and download progress."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the response body to this file."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~resttree.output.OutputManager` and, in
    verbose mode, routes the library's ``logging`` records to stderr.
    """
    from resttree.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )
    if verbose:
        _enable_debug_logging()

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _enable_debug_logging() -> None:
    """Attach a Rich stderr handler to the ``resttree`` logger (once)."""
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("resttree")
    logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("request")
def request_command(
    verb: str = typer.Argument(..., help="Registered verb: get, post, put, patch, delete, ..."),
    path: str = typer.Argument("", help="Resource path, may contain :name placeholders."),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Base URL of the API."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as key=value. Repeatable."
    ),
    fill: Optional[list[str]] = typer.Option(
        None, "--fill", "-f", help="Placeholder value as name=value. Repeatable."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body: JSON text, raw text, or @file."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Options file used instead of ./resttree.json."
    ),
) -> None:
    """Send one request and print the decoded response body."""
    from resttree.config import resolve_options
    from resttree.exceptions import HttpStatusError, InvalidUsageError, ResttreeError
    from resttree.output import get_output

    output = get_output()
    try:
        options = resolve_options(root, _parse_headers(header or []), config_file)
        verb = verb.lower()
        spec = options.methods.get(verb)
        if spec is None:
            known = ", ".join(sorted(options.methods))
            raise InvalidUsageError(f"Unknown verb {verb!r} (known: {known})")

        kwargs: dict[str, Any] = {"params": _parse_pairs(param or [], "--param") or None}
        body = _parse_body(data)
        if body is not None:
            if "body" not in spec.args:
                raise InvalidUsageError(f"{verb} does not take a request body")
            kwargs["body"] = body

        result = asyncio.run(
            _perform(options, verb, path, _parse_pairs(fill or [], "--fill"), kwargs)
        )
    except HttpStatusError as exc:
        output.error(str(exc))
        if exc.data not in (None, "", b"", {}):
            output.format_response(exc.data)
        raise typer.Exit(exc.exit_code)
    except ResttreeError as exc:
        output.error(str(exc))
        raise typer.Exit(exc.exit_code)

    output.format_response(result)


@config_app.command("show")
def config_show(
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Base URL of the API."),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Options file used instead of ./resttree.json."
    ),
) -> None:
    """Print the resolved client options as JSON."""
    from resttree.config import resolve_options
    from resttree.exceptions import ResttreeError
    from resttree.output import get_output

    output = get_output()
    try:
        options = resolve_options(root, None, config_file)
    except ResttreeError as exc:
        output.error(str(exc))
        raise typer.Exit(exc.exit_code)
    output.print_data(json.dumps(options.model_dump(mode="json"), indent=2))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _build_transport() -> Any:
    """Create the transport used by ``request``; replaced in tests."""
    from resttree.client import HttpxTransport

    return HttpxTransport(follow_redirects=True)


async def _perform(
    options: Any,
    verb: str,
    path: str,
    fill_values: dict[str, str],
    kwargs: dict[str, Any],
) -> Any:
    from resttree.client import RequestClient
    from resttree.output import get_output

    transport = _build_transport()
    async with transport, RequestClient(options, transport=transport) as client:
        node = client.model(path).fill(fill_values)
        call = getattr(node, verb)
        return await call(on_progress=get_output().progress, **kwargs)


def _parse_pairs(values: list[str], option: str) -> dict[str, str]:
    """Parse ``key=value`` strings into a dict."""
    from resttree.exceptions import InvalidUsageError

    pairs: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"{option} expects key=value, got {item!r}")
        pairs[key] = value
    return pairs


def _parse_headers(values: list[str]) -> dict[str, str]:
    """Parse ``Name: value`` strings into a dict."""
    from resttree.exceptions import InvalidUsageError

    headers: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"--header expects 'Name: value', got {item!r}")
        headers[name.strip()] = value.strip()
    return headers


def _parse_body(data: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *data* as JSON if possible, returning the raw text on failure.

    A leading ``@`` reads the body from the named file.
    """
    if data is None:
        return None
    if data.startswith("@"):
        from resttree.exceptions import InvalidUsageError

        path = Path(data[1:]).expanduser()
        try:
            data = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidUsageError(f"Cannot read body file {path}: {exc}") from exc
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from resttree.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``resttree`` console script.

    :class:`~resttree.exceptions.ResttreeError` instances escaping a command
    cause a clean exit with the error's ``exit_code``; any other exception
    produces a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from resttree.exceptions import ResttreeError
        from resttree.output import error

        if isinstance(exc, ResttreeError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
