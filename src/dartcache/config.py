"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.dartcache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Global config** -- a single :class:`~dartcache.models.GlobalConfig`
  JSON file.
* **Database location** -- :func:`resolve_db_path` merges the ``--db``
  flag, environment variables, the global config and the default.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from dartcache.exceptions import ConfigError
from dartcache.models import GlobalConfig

_APP_NAME = "dartcache"
_CONFIG_FILENAME = "config.json"
_DB_FILENAME = "cache.db"

ENV_DB = "DARTCACHE_DB"
"""Full path of the cache database file."""

ENV_CACHE_DIR = "DARTCACHE_CACHE_DIR"
"""Directory holding ``cache.db``; ignored when :data:`ENV_DB` is set."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_dir(env_var: str, default_segments: tuple[str, ...], fallback: Path) -> Path:
    """Resolve ``$env_var/dartcache`` (or its default under $HOME) and create it."""
    if _is_xdg_platform():
        env_value = os.environ.get(env_var, "")
        base = Path(env_value) if env_value else Path.home().joinpath(*default_segments)
        path = base / _APP_NAME
    else:
        path = fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/dartcache/`` (default ``~/.config/dartcache/``).
    On macOS/Windows: ``~/.dartcache/``.
    """
    return _xdg_dir("XDG_CONFIG_HOME", (".config",), _fallback_base_dir())


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    The default database lives here. Cached responses can be deleted at
    any time; the corp-code dictionary is re-imported on the next sync.

    On Linux/BSD: ``$XDG_CACHE_HOME/dartcache/`` (default ``~/.cache/dartcache/``).
    On macOS/Windows: ``~/.dartcache/cache/``.
    """
    return _xdg_dir("XDG_CACHE_HOME", (".cache",), _fallback_base_dir() / "cache")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/dartcache/`` (default ``~/.local/share/dartcache/``).
    On macOS/Windows: ``~/.dartcache/logs/``.
    """
    return _xdg_dir("XDG_DATA_HOME", (".local", "share"), _fallback_base_dir() / "logs")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to *path* through a temp file in the same directory and rename it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~dartcache.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_db_path(
    cli_db: Optional[str] = None,
    config: Optional[GlobalConfig] = None,
) -> Path:
    """Resolve the cache database path.

    Precedence (high to low):
        1. ``--db`` CLI flag
        2. ``DARTCACHE_DB`` environment variable
        3. ``DARTCACHE_CACHE_DIR`` environment variable (``<dir>/cache.db``)
        4. ``cache.path`` in the global config
        5. ``<cache dir>/cache.db``
    """
    if cli_db:
        return Path(cli_db).expanduser()
    env_db = os.environ.get(ENV_DB)
    if env_db:
        return Path(env_db).expanduser()
    env_dir = os.environ.get(ENV_CACHE_DIR)
    if env_dir:
        return Path(env_dir).expanduser() / _DB_FILENAME
    if config is None:
        config = load_global_config()
    if config.cache.path:
        return Path(config.cache.path).expanduser()
    return get_cache_dir() / _DB_FILENAME
