"""Device-local key/value storage.

A tiny string-blob store keyed by fixed names. The offline answer queue uses
it to keep pending answers and the last sync time across restarts.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from app.logging_config import get_logger

logger = get_logger(__name__)


class LocalStorageError(Exception):
    """Raised when the local store cannot be read or written."""
    pass


class LocalStorage:
    """Interface for get/set/remove of string values by key."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryLocalStorage(LocalStorage):
    """Process-local storage; contents are lost when the process exits.

    Sharing one instance between two queues simulates a restart in tests.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileLocalStorage(LocalStorage):
    """File-backed storage with one file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a crash mid-write never leaves a truncated
    value behind.

    Usage:
        storage = FileLocalStorage("./.local_storage")
        storage.set("offlineAnswers", "[]")
        storage.get("offlineAnswers")  # '[]'
    """

    def __init__(self, directory: str):
        """Initialize storage rooted at ``directory`` (created if missing).

        Args:
            directory: Directory that holds one file per key

        Raises:
            LocalStorageError: If the directory cannot be created
        """
        self.directory = Path(directory)
        self._lock = threading.Lock()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create local storage directory {self.directory}: {e}")
            raise LocalStorageError(f"Cannot create local storage at {self.directory}: {e}")

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise LocalStorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent.

        Raises:
            LocalStorageError: If the file exists but cannot be read
        """
        path = self._path(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                return path.read_text(encoding="utf-8")
            except OSError as e:
                logger.error(f"Error reading local storage key {key}: {e}")
                raise LocalStorageError(f"Error reading '{key}': {e}")

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            LocalStorageError: If the value cannot be written
        """
        path = self._path(key)
        with self._lock:
            tmp_name = None
            try:
                fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except OSError as e:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                logger.error(f"Error writing local storage key {key}: {e}")
                raise LocalStorageError(f"Error writing '{key}': {e}")

    def remove(self, key: str) -> None:
        """Delete ``key``; removing a missing key is a no-op.

        Raises:
            LocalStorageError: If the file exists but cannot be deleted
        """
        path = self._path(key)
        with self._lock:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Error removing local storage key {key}: {e}")
                raise LocalStorageError(f"Error removing '{key}': {e}")
