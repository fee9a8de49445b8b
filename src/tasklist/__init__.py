"""
tasklist - a task list with dual-backend persistence.

Tasks live in a SQLite database when one is available and in a durable
key-value fallback store otherwise.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from tasklist.core.config.models import TasklistConfig
from tasklist.core.tasks.models import Task, TaskPriority

__all__ = ["TasklistConfig", "Task", "TaskPriority", "__version__"]
