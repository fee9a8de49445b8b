"""
Configuration models and loading.

This module provides Pydantic models for tasklist configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    get_xdg_data_home,
    load_config,
    resolve_data_dir,
    resolve_database_path,
    resolve_fallback_dir,
)
from .models import StorageConfig, TasklistConfig

__all__ = [
    # Models
    "StorageConfig",
    "TasklistConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_config",
    "load_layered_env",
    "resolve_data_dir",
    "resolve_database_path",
    "resolve_fallback_dir",
]
