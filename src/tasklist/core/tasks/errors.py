"""
Exceptions raised by the task persistence layer.

Kinds of failure and where they are handled:
- capability absent / initialization failure: handled inside
  PersistenceAdapter by switching to the fallback backend
- BridgeError: raised by bridge implementations
- AdapterError: a CRUD call on the active backend failed
- FallbackStoreError: the fallback slot is unreadable or unwritable
- TaskStoreError / StoreNotReadyError: surfaced by TaskStore to consumers
"""


class BridgeError(Exception):
    """Raised when a database bridge call fails."""

    pass


class FallbackStoreError(Exception):
    """Raised when the fallback key-value slot cannot be read or written."""

    pass


class AdapterError(Exception):
    """
    Raised when a persistence adapter operation fails.

    Attributes:
        operation: Adapter operation name (insert, update, delete, ...)
        task_id: Target task id, if the operation had one
    """

    def __init__(self, operation: str, task_id: int | None = None, detail: str | None = None):
        self.operation = operation
        self.task_id = task_id
        message = f"{operation} failed"
        if task_id is not None:
            message += f" for task {task_id}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class TaskStoreError(Exception):
    """
    Raised by TaskStore when a mutation could not be persisted.

    ``notice`` is the short human-readable message meant for end users;
    the underlying adapter error is chained as ``__cause__``.
    """

    def __init__(self, notice: str, operation: str, task_id: int | None = None):
        self.notice = notice
        self.operation = operation
        self.task_id = task_id
        super().__init__(notice)


class StoreNotReadyError(Exception):
    """Raised when a mutation is attempted before the store finished loading."""

    pass
