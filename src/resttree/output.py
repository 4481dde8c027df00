"""Output layer of the ``resttree`` command line, with stdout/stderr discipline.

* **stdout** -- decoded response bodies only, so results can be piped.
* **stderr** -- status lines, progress, warnings and errors.
* **TTY detection** -- Rich rendering when stdout is an interactive
  terminal, plain text when piped.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and
  ``--no-color``.

:class:`OutputManager` holds the preferences; it is created once by
:func:`~resttree.app.main_callback` and installed with :func:`set_output`.
The module-level :func:`error` helper delegates to the installed instance.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """Supported output formats.

    ``AUTO`` resolves to ``RICH`` for an interactive, colour-capable stdout
    and to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes decoded responses to stdout and diagnostics to stderr.

    Args:
        format: Desired output format.  ``AUTO`` resolves by TTY detection.
        no_color: Disable colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages (including download progress).
        output_file: Write response bodies to this path instead of stdout.
            Binary bodies are written byte for byte.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a decoded response body.

        ``dict``/``list`` values are rendered as JSON, ``str`` as text and
        ``bytes`` either written to the output file or summarised on stderr
        (binary data never goes to a terminal).
        """
        if self._output_file:
            self._write_to_file(data)
            return

        if isinstance(data, bytes):
            self.info(f"<{len(data)} bytes of binary data; use --output to save>")
            return

        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._print_rich(data)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, "")

    def warning(self, message: str) -> None:
        """Print a warning to stderr. NOT suppressed by ``--quiet``."""
        self._emit(f"Warning: {message}", "yellow")

    def error(self, message: str) -> None:
        """Print an error to stderr. Never suppressed."""
        self._emit(f"Error: {message}", "bold red")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", "dim")

    def progress(self, received: int, total: int) -> None:
        """Report download progress on stderr. Only shown with ``--verbose``."""
        if self._verbose:
            percent = (received * 100 // total) if total else 100
            self._emit(f"Downloaded {received}/{total} bytes ({percent}%)", "dim")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, style: str) -> None:
        if self._no_color or not style:
            print(message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(message, style=style, markup=False)

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))

    def _print_rich(self, data: Any) -> None:
        if isinstance(data, (dict, list)):
            syntax = Syntax(_to_json(data), "json", theme="monokai", word_wrap=True)
            self._stdout.print(syntax)
        else:
            self._stdout.print(str(data), markup=False)

    def _write_to_file(self, data: Any) -> None:
        assert self._output_file is not None
        if isinstance(data, bytes):
            with open(self._output_file, "wb") as f:
                f.write(data)
            return
        content = _to_json(data) if isinstance(data, (dict, list)) else str(data)
        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content)
            if not content.endswith("\n"):
                f.write("\n")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager`."""
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager.  Used by the test suite between tests."""
    global _output
    _output = None


def error(message: str) -> None:
    get_output().error(message)
