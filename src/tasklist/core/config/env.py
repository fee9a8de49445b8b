"""Layered .env loading for TASKLIST_* settings.

Storage settings such as TASKLIST_DB_PATH can be kept in a user .env
(``$XDG_CONFIG_HOME/tasklist/.env``) or a project .env next to
``.tasklist.json``. Precedence:

  shell environment > project .env > user .env

Only TASKLIST_* keys are taken from the files; anything else in a
shared .env is left alone.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

ENV_PREFIX = "TASKLIST_"


def _tasklist_values(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None and key.startswith(ENV_PREFIX)
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """Export TASKLIST_* values from the user and project .env files.

    Args:
        project_dir: Directory holding the project .env (defaults to cwd)
        user_env_paths: Override the user .env locations
        project_env_paths: Override the project .env locations

    Returns:
        Names of the variables this call exported
    """
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "tasklist" / ".env"]
    if project_env_paths is None:
        project_env_paths = [(project_dir or Path.cwd()) / ".env"]

    exported: set[str] = set()
    # Lowest layer first; later layers may replace what earlier layers exported
    for path in [*user_env_paths, *project_env_paths]:
        for key, value in _tasklist_values(Path(path)).items():
            if key in os.environ and key not in exported:
                continue
            os.environ[key] = value
            exported.add(key)
    return exported
