"""Tests for resttree.output: stream discipline, formats, quiet/verbose."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from resttree.output import (
    OutputFormat,
    OutputManager,
    get_output,
    reset_output,
    set_output,
)


class TestFormatResolution:
    def test_auto_is_plain_when_not_a_tty(self) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_is_kept(self) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setattr("resttree.output._is_tty", lambda: True)
        assert OutputManager().format == OutputFormat.PLAIN

    def test_tty_with_color_is_rich(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        monkeypatch.setattr("resttree.output._is_tty", lambda: True)
        assert OutputManager().format == OutputFormat.RICH


class TestFormatResponse:
    def test_json_format(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"id": 1, "name": "é"})
        out = capsys.readouterr().out
        assert json.loads(out) == {"id": 1, "name": "é"}

    def test_plain_dict(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"id": 1, "name": "x"})
        assert capsys.readouterr().out == "id\t1\nname\tx\n"

    def test_plain_list_of_dicts(self, capsys) -> None:
        manager = OutputManager(format=OutputFormat.PLAIN)
        manager.format_response([{"id": 1, "n": "a"}, {"id": 2, "n": "b"}])
        assert capsys.readouterr().out == "1\ta\n2\tb\n"

    def test_plain_text(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response("hello")
        assert capsys.readouterr().out == "hello\n"

    def test_bytes_are_summarized_on_stderr(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(b"\x00\x01")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "<2 bytes of binary data" in captured.err

    def test_output_file_text(self, tmp_path: Path, capsys) -> None:
        target = tmp_path / "out.json"
        OutputManager(output_file=str(target)).format_response({"a": 1})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}
        assert capsys.readouterr().out == ""

    def test_output_file_binary(self, tmp_path: Path) -> None:
        target = tmp_path / "out.bin"
        OutputManager(output_file=str(target)).format_response(b"\x89PNG")
        assert target.read_bytes() == b"\x89PNG"


class TestDiagnostics:
    def test_info_goes_to_stderr(self, capsys) -> None:
        OutputManager(no_color=True).info("hello")
        captured = capsys.readouterr()
        assert captured.err == "hello\n"
        assert captured.out == ""

    def test_quiet_suppresses_info_not_errors(self, capsys) -> None:
        manager = OutputManager(no_color=True, quiet=True)
        manager.info("hidden")
        manager.warning("careful")
        manager.error("broken")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Warning: careful" in err
        assert "Error: broken" in err

    def test_debug_requires_verbose(self, capsys) -> None:
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "[debug] loud" in err

    def test_progress_requires_verbose(self, capsys) -> None:
        OutputManager(no_color=True).progress(50, 100)
        OutputManager(no_color=True, verbose=True).progress(50, 100)
        assert capsys.readouterr().err == "Downloaded 50/100 bytes (50%)\n"

    def test_progress_with_zero_total(self, capsys) -> None:
        OutputManager(no_color=True, verbose=True).progress(0, 0)
        assert "(100%)" in capsys.readouterr().err


class TestGlobalManager:
    def test_get_output_creates_default(self) -> None:
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self) -> None:
        manager = OutputManager(format=OutputFormat.JSON)
        set_output(manager)
        assert get_output() is manager
