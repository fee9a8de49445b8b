"""
Load tasklist settings from every layer and validate them.

Layers, lowest to highest:
    built-in defaults < user config.json < project .tasklist.json < TASKLIST_* env

The result is cached per process; tests call clear_cache() between runs.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import TasklistConfig

logger = logging.getLogger(__name__)

_config_cache: TasklistConfig | None = None

PROJECT_CONFIG_NAME = ".tasklist.json"

DEFAULTS: dict[str, Any] = {
    "storage": {
        "backend": "auto",
        "table_name": "todos",
        "fallback_key": "todos",
    },
    "seed_examples": True,
    "log_level": "WARNING",
}


def _xdg_dir(variable: str, *fallback: str) -> Path:
    if value := os.environ.get(variable):
        return Path(value)
    return Path.home().joinpath(*fallback)


def get_xdg_config_home() -> Path:
    """$XDG_CONFIG_HOME, or ~/.config."""
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def get_xdg_data_home() -> Path:
    """$XDG_DATA_HOME, or ~/.local/share."""
    return _xdg_dir("XDG_DATA_HOME", ".local", "share")


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "tasklist" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    return (cwd or Path.cwd()) / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``override`` into a copy of ``base``.

    Nested sections such as ``storage`` are merged key by key, so a
    project file that only sets ``storage.backend`` keeps the user's
    ``storage.database_path``.

    Example:
        >>> deep_merge({"storage": {"backend": "auto"}}, {"storage": {"table_name": "work"}})
        {'storage': {'backend': 'auto', 'table_name': 'work'}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read one config layer.

    A missing file, unreadable file or non-object JSON is skipped (None);
    broken files are logged so a typo does not silently change storage.
    """
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be an object", path)
        return None
    return data


def _env_flag(value: str) -> bool:
    return value.lower() not in ("false", "0", "no", "")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply TASKLIST_* environment variables on top of the file layers.

    Supported env vars:
        TASKLIST_BACKEND - storage.backend (auto|fallback)
        TASKLIST_DB_PATH - storage.database_path
        TASKLIST_FALLBACK_DIR - storage.fallback_dir
        TASKLIST_DATA_DIR - data_dir
        TASKLIST_SEED - seed_examples (0/false/no disables)
        TASKLIST_LOG_LEVEL - log_level
    """
    result = dict(config_dict)
    storage = dict(result.get("storage") or {})

    if backend := os.environ.get("TASKLIST_BACKEND"):
        storage["backend"] = backend.lower()
    if db_path := os.environ.get("TASKLIST_DB_PATH"):
        storage["database_path"] = db_path
    if fallback_dir := os.environ.get("TASKLIST_FALLBACK_DIR"):
        storage["fallback_dir"] = fallback_dir
    if storage:
        result["storage"] = storage

    if data_dir := os.environ.get("TASKLIST_DATA_DIR"):
        result["data_dir"] = data_dir
    if (seed := os.environ.get("TASKLIST_SEED")) is not None:
        result["seed_examples"] = _env_flag(seed)
    if log_level := os.environ.get("TASKLIST_LOG_LEVEL"):
        result["log_level"] = log_level

    return result


def get_default_config() -> dict[str, Any]:
    """Fresh copy of the built-in defaults."""
    return copy.deepcopy(DEFAULTS)


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> TasklistConfig:
    """
    Build the effective configuration.

    Args:
        project_dir: Where to look for .tasklist.json (defaults to cwd)
        use_cache: Reuse the configuration from an earlier call

    Returns:
        Validated TasklistConfig

    Raises:
        ValidationError: If the merged settings are invalid (for example
            TASKLIST_BACKEND=postgres)
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()
    for path in (get_user_config_path(), get_project_config_path(project_dir)):
        if layer := load_json_file(path):
            merged = deep_merge(merged, layer)
    merged = apply_env_overrides(merged)

    config = TasklistConfig(**merged)
    logger.debug("Loaded config backend=%s seed=%s", config.storage.backend, config.seed_examples)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Forget the cached configuration."""
    global _config_cache
    _config_cache = None


def resolve_data_dir(config: TasklistConfig) -> Path:
    """Base directory for the database and fallback files."""
    return config.data_dir or get_xdg_data_home() / "tasklist"


def resolve_database_path(config: TasklistConfig) -> Path:
    return config.storage.database_path or resolve_data_dir(config) / "tasks.db"


def resolve_fallback_dir(config: TasklistConfig) -> Path:
    return config.storage.fallback_dir or resolve_data_dir(config)
