"""
Persistence backend protocol and registry.

This module defines the PersistenceBackend protocol that both task
backends implement (structured database and fallback key-value slot),
so the adapter and store never depend on a concrete variant.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .models import Task, TaskDraft


@runtime_checkable
class PersistenceBackend(Protocol):
    """
    Protocol for task persistence backends.

    All methods are coroutines; they may suspend pending I/O.

    Backends are responsible for:
    - Making sure their storage exists (ensure_schema)
    - Returning tasks newest first (load_all)
    - Assigning ids on insert
    - Applying partial updates without touching unspecified fields
    """

    @property
    def name(self) -> str:
        """
        Get the name of this backend.

        Returns:
            Backend name ('structured' or 'fallback')
        """
        ...

    async def ensure_schema(self) -> None:
        """
        Make sure the task table/collection exists.

        Must be idempotent: an existing table is not an error.
        """
        ...

    async def load_all(self) -> list[Task]:
        """
        Load every stored task.

        Returns:
            Tasks ordered by created_at descending (empty list on empty store)
        """
        ...

    async def insert(self, draft: TaskDraft) -> int:
        """
        Persist a new task.

        Args:
            draft: Task fields without an id

        Returns:
            The id assigned by the backend
        """
        ...

    async def update(self, task_id: int, changes: dict[str, Any]) -> None:
        """
        Persist a partial update.

        Args:
            task_id: Task to update
            changes: Fields to write, keyed by python field name. Fields
                that are not present are left untouched.
        """
        ...

    async def delete(self, task_id: int) -> None:
        """
        Remove a task.

        Deleting an unknown id is a no-op.

        Args:
            task_id: Task to delete
        """
        ...


# Backend registry
_backends: dict[str, type[PersistenceBackend]] = {}


def register_backend(
    name: str,
) -> Callable[[type[PersistenceBackend]], type[PersistenceBackend]]:
    """
    Decorator to register a persistence backend implementation.

    Usage:
        @register_backend('fallback')
        class FallbackBackend:
            async def load_all(self):
                ...

    Args:
        name: Backend name (e.g., 'structured', 'fallback')

    Returns:
        Decorator function
    """

    def decorator(backend_class: type[PersistenceBackend]) -> type[PersistenceBackend]:
        _backends[name] = backend_class
        return backend_class

    return decorator


def get_backend_class(name: str) -> type[PersistenceBackend]:
    """
    Look up a registered backend class.

    Raises:
        ValueError: If no backend is registered under ``name``
    """
    backend_class = _backends.get(name)
    if backend_class is None:
        raise ValueError(
            f"Backend '{name}' not registered. Available backends: {', '.join(_backends.keys())}"
        )
    return backend_class


def list_backends() -> list[str]:
    """
    List all registered backend names.

    Returns:
        List of backend names
    """
    return list(_backends.keys())
