"""Client option resolution from config files, environment and CLI flags.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.resttree/`` on macOS and Windows.  See :func:`get_config_dir`.
* **Files** -- a user-wide ``config.json`` in the config directory and a
  project-local ``./resttree.json``.  Both hold the keys of
  :class:`~resttree.models.ClientOptions` (``root``, ``headers``,
  ``config``, ``methods``).
* **Precedence** -- :func:`resolve_options` layers CLI flags over
  environment variables over the project file over the user file over
  defaults.  Mappings (``headers``, ``config``, ``methods``) are merged
  key-by-key across layers; ``root`` is replaced.
"""

from __future__ import annotations

import json
import os
import platform
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from resttree.exceptions import ConfigError
from resttree.models import ClientOptions
from resttree.utils import merge

_APP_NAME = "resttree"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "resttree.json"

ENV_ROOT = "RESTTREE_ROOT"
ENV_HEADERS = "RESTTREE_HEADERS"

_MAPPING_KEYS = ("headers", "config", "methods")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/resttree/`` (default ``~/.config/resttree/``).
    On macOS/Windows: ``~/.resttree/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/resttree/`` (default ``~/.local/share/resttree/``).
    On macOS/Windows: ``~/.resttree/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Files ---


def load_options_file(path: Path) -> dict[str, Any]:
    """Read an options file.

    Args:
        path: JSON file holding a subset of the
            :class:`~resttree.models.ClientOptions` keys.

    Returns:
        The parsed mapping, or ``{}`` if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or is not an object.
    """
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid options file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid options file at {path}: expected a JSON object")
    return data


def _user_options() -> dict[str, Any]:
    return load_options_file(get_config_dir() / _CONFIG_FILENAME)


def _project_options() -> dict[str, Any]:
    return load_options_file(Path.cwd() / _PROJECT_CONFIG_FILENAME)


def _env_options() -> dict[str, Any]:
    """Options taken from ``RESTTREE_ROOT`` and ``RESTTREE_HEADERS`` (a JSON object)."""
    options: dict[str, Any] = {}
    root = os.environ.get(ENV_ROOT)
    if root:
        options["root"] = root
    raw_headers = os.environ.get(ENV_HEADERS)
    if raw_headers:
        try:
            headers = json.loads(raw_headers)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{ENV_HEADERS} is not valid JSON: {exc}") from exc
        if not isinstance(headers, dict):
            raise ConfigError(f"{ENV_HEADERS} must be a JSON object")
        options["headers"] = headers
    return options


# --- Precedence resolution ---


def _layer(base: Mapping[str, Any], top: Mapping[str, Any]) -> dict[str, Any]:
    return merge(base, top, _MAPPING_KEYS)


def resolve_options(
    cli_root: Optional[str] = None,
    cli_headers: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> ClientOptions:
    """Resolve client options with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_root``, ``cli_headers``)
        2. Environment variables (``RESTTREE_ROOT``, ``RESTTREE_HEADERS``)
        3. Project config (``./resttree.json``) or *config_file* when given
        4. User config (``~/.config/resttree/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is unreadable or the merged result fails
            validation.
    """
    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError(f"Options file not found: {config_file}")
        project = load_options_file(config_file)
    else:
        project = _project_options()

    options = _layer(_user_options(), project)
    options = _layer(options, _env_options())

    cli: dict[str, Any] = {}
    if cli_root is not None:
        cli["root"] = cli_root
    if cli_headers:
        cli["headers"] = dict(cli_headers)
    options = _layer(options, cli)

    try:
        return ClientOptions.model_validate(options)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client options: {exc}") from exc
