"""
Durable key-value slots for the fallback backend.

A slot holds one serialized blob per key. The fallback backend keeps
the whole task collection under a single key and rewrites it in full
after every mutation.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import FallbackStoreError

_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueSlot(Protocol):
    """Protocol for a durable string key-value store."""

    def read(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        ...

    def write(self, key: str, value: str) -> None:
        """Replace the stored value."""
        ...


class MemorySlot:
    """
    Slot that keeps values in a dict.

    Useful for tests and for sessions that should not touch the disk.
    Sharing one instance between adapters simulates a page reload.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value


class FileSlot:
    """
    Slot that stores each key as ``<directory>/<key>.json``.

    Writes go to a temporary file first and are moved into place with an
    atomic rename, so a crash never leaves a half-written blob behind.

    Example:
        >>> slot = FileSlot(Path(".tasklist"))
        >>> slot.write("todos", "[]")
        >>> slot.read("todos")
        '[]'
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not _KEY.match(key):
            raise FallbackStoreError(f"Invalid slot key: {key!r}")
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FallbackStoreError(f"Failed to read {path}: {e}") from e
        # Drop the trailing newline added by write()
        return text[:-1] if text.endswith("\n") else text

    def write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}_", suffix=".tmp")
        except OSError as e:
            raise FallbackStoreError(f"Failed to write {path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.write("\n")

            # Atomic rename (replaces existing file)
            os.replace(temp_path, path)
        except OSError as e:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise FallbackStoreError(f"Failed to write {path}: {e}") from e
