"""
Configuration data models for tasklist.

These models define the structure of .tasklist.json and
~/.config/tasklist/config.json files, with validation and type safety
via Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """
    Where tasks are persisted.

    ``backend="auto"`` tries the SQLite database first and falls back to
    the key-value store if it is unusable. ``backend="fallback"`` skips
    the database entirely, as if the host had no database bridge.
    """
    backend: str = Field(
        default="auto",
        pattern="^(auto|fallback)$",
        description="Storage selection: 'auto' or 'fallback'"
    )
    database_path: Optional[Path] = Field(
        default=None,
        description="SQLite database file (defaults to <data dir>/tasks.db)"
    )
    fallback_dir: Optional[Path] = Field(
        default=None,
        description="Directory for fallback store files (defaults to <data dir>)"
    )
    table_name: str = Field(
        default="todos",
        pattern="^[A-Za-z_][A-Za-z0-9_]*$",
        description="Database table holding the tasks"
    )
    fallback_key: str = Field(
        default="todos",
        pattern="^[A-Za-z0-9_.-]+$",
        description="Fallback store key holding the serialized task list"
    )

    @property
    def use_database(self) -> bool:
        return self.backend == "auto"


class TasklistConfig(BaseModel):
    """
    Top-level tasklist configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = TasklistConfig(storage=StorageConfig(backend="fallback"))
        >>> config.storage.use_database
        False
    """
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Persistence settings"
    )
    data_dir: Optional[Path] = Field(
        default=None,
        description="Base directory for tasklist data (defaults to XDG data home)"
    )
    seed_examples: bool = Field(
        default=True,
        description="Insert example tasks when the store is empty on first run"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level when --debug is not given"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
