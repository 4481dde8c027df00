"""Tests for resttree.config: XDG paths, options files, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from resttree.config import (
    get_config_dir,
    get_data_dir,
    load_options_file,
    resolve_options,
)
from resttree.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _user_file(root: Path) -> Path:
    return root / "config" / "resttree" / "config.json"


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("resttree.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".config" / "resttree"

    def test_config_dir_xdg_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("resttree.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        assert get_config_dir() == tmp_path / "cfg" / "resttree"

    def test_config_dir_is_not_created(self, isolated_config: Path) -> None:
        assert not get_config_dir().exists()

    def test_data_dir_is_created(self, isolated_config: Path) -> None:
        path = get_data_dir()
        assert path == isolated_config / "data" / "resttree"
        assert path.is_dir()


class TestNonXDGPaths:
    def test_dot_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("resttree.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".resttree"
        assert get_data_dir() == tmp_path / ".resttree"


# ---------------------------------------------------------------------------
# Options files
# ---------------------------------------------------------------------------


class TestLoadOptionsFile:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_options_file(tmp_path / "nope.json") == {}

    def test_reads_object(self, tmp_path: Path) -> None:
        path = tmp_path / "opts.json"
        _write_json(path, {"root": "https://x"})
        assert load_options_file(path) == {"root": "https://x"}

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "opts.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid options file"):
            load_options_file(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "opts.json"
        _write_json(path, ["root"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_options_file(path)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveOptions:
    def test_defaults(self, isolated_config: Path) -> None:
        options = resolve_options()
        assert options.root == ""
        assert options.headers == {}
        assert "get" in options.methods

    def test_user_file(self, isolated_config: Path) -> None:
        _write_json(_user_file(isolated_config), {"root": "https://user", "headers": {"A": "u"}})
        options = resolve_options()
        assert options.root == "https://user"
        assert options.headers == {"A": "u"}

    def test_project_file_over_user_file(self, isolated_config: Path) -> None:
        _write_json(_user_file(isolated_config), {"root": "https://user", "headers": {"A": "u"}})
        _write_json(isolated_config / "resttree.json", {"root": "https://proj/", "headers": {"B": "p"}})
        options = resolve_options()
        assert options.root == "https://proj"
        assert options.headers == {"A": "u", "B": "p"}

    def test_env_over_files(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "resttree.json", {"root": "https://proj", "headers": {"A": "p"}})
        monkeypatch.setenv("RESTTREE_ROOT", "https://env")
        monkeypatch.setenv("RESTTREE_HEADERS", '{"A": "e"}')
        options = resolve_options()
        assert options.root == "https://env"
        assert options.headers == {"A": "e"}

    def test_cli_over_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTTREE_ROOT", "https://env")
        monkeypatch.setenv("RESTTREE_HEADERS", '{"A": "e", "B": "e"}')
        options = resolve_options("https://cli", {"B": "c"})
        assert options.root == "https://cli"
        assert options.headers == {"A": "e", "B": "c"}

    def test_explicit_config_file_replaces_project_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "resttree.json", {"root": "https://proj"})
        other = isolated_config / "other.json"
        _write_json(other, {"root": "https://other", "config": {"timeout": 3}})
        options = resolve_options(config_file=other)
        assert options.root == "https://other"
        assert options.config == {"timeout": 3}

    def test_missing_explicit_config_file(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_options(config_file=isolated_config / "missing.json")

    def test_custom_methods_merge_with_defaults(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "resttree.json",
            {"methods": {"head": {"method": "head"}}},
        )
        options = resolve_options()
        assert options.methods["head"].method == "HEAD"
        assert options.methods["post"].args == ("url", "body", "params")

    def test_invalid_method_spec(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "resttree.json",
            {"methods": {"odd": {"method": "GET", "args": ["params", "url"]}}},
        )
        with pytest.raises(ConfigError, match="Invalid client options"):
            resolve_options()

    @pytest.mark.parametrize("raw", ["{broken", '["a"]'])
    def test_invalid_env_headers(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        monkeypatch.setenv("RESTTREE_HEADERS", raw)
        with pytest.raises(ConfigError, match="RESTTREE_HEADERS"):
            resolve_options()

    def test_non_string_root(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "resttree.json", {"root": 5})
        with pytest.raises(ConfigError, match="Invalid client options"):
            resolve_options()
