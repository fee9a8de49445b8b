"""
Task persistence and state.

This package provides the Task model, the persistence backends
(structured database and fallback key-value slot), the adapter that
chooses between them, and the TaskStore that keeps the in-memory list
in sync with storage.
"""

from .adapter import PersistenceAdapter, create_adapter
from .backend import PersistenceBackend, get_backend_class, list_backends, register_backend
from .bridge import DatabaseBridge, SqliteBridge
from .errors import (
    AdapterError,
    BridgeError,
    FallbackStoreError,
    StoreNotReadyError,
    TaskStoreError,
)
from .models import CATEGORIES, Task, TaskDraft, TaskFields, TaskPriority, TaskUpdate
from .slots import FileSlot, KeyValueSlot, MemorySlot
from .store import Notice, NoticeLevel, StoreState, TaskStore
from .views import TaskFilter, TaskStats, compute_stats, filter_tasks

# Import backend implementations to trigger registration
from . import fallback, structured  # noqa: F401, E402

__all__ = [
    # Models
    "CATEGORIES",
    "Task",
    "TaskDraft",
    "TaskFields",
    "TaskPriority",
    "TaskUpdate",
    # Backend protocol and registry
    "PersistenceBackend",
    "register_backend",
    "get_backend_class",
    "list_backends",
    # Storage
    "DatabaseBridge",
    "SqliteBridge",
    "KeyValueSlot",
    "FileSlot",
    "MemorySlot",
    "PersistenceAdapter",
    "create_adapter",
    # Store
    "TaskStore",
    "StoreState",
    "Notice",
    "NoticeLevel",
    # Views
    "TaskFilter",
    "TaskStats",
    "compute_stats",
    "filter_tasks",
    # Errors
    "AdapterError",
    "BridgeError",
    "FallbackStoreError",
    "StoreNotReadyError",
    "TaskStoreError",
]
