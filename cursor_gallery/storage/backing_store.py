"""
Key-value backing stores for the gallery.

The gallery only needs ``get`` and ``set``. Two implementations are
provided: an in-memory store for tests and embedding, and a JSON file
store that rewrites the whole file atomically on every ``set``.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from cursor_gallery.core.config import StorageConfig
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


class BackingStoreError(Exception):
    """Backing store read/write errors."""

    pass


class KeyValueStore(ABC):
    """Minimal persistent key-value interface."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` if absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over the stored keys."""

    def __contains__(self, key: str) -> bool:
        return key in set(self.keys())


class MemoryStore(KeyValueStore):
    """Dictionary-backed store. Values are JSON round-tripped on write."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        # Hand out copies so callers cannot mutate stored state in place
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise BackingStoreError(f"Value for {key!r} is not serializable: {e}") from e

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class JsonFileStore(KeyValueStore):
    """
    JSON file store.

    Every read loads the file and every write replaces it, so separate
    processes see each other's writes. Concurrent writers are last write
    wins.

    Security:
    - Path traversal protection
    - Atomic replace on write
    """

    def __init__(self, config: StorageConfig):
        """
        Initialize JSON file store.

        Args:
            config: Storage configuration

        Raises:
            BackingStoreError: If storage path is invalid
        """
        try:
            self._data_dir = config.data_dir.resolve(strict=False)
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except (RuntimeError, OSError) as e:
            raise BackingStoreError(f"Invalid storage path: {e}") from e

        self._path = self._data_dir / config.store_filename

        if not self._is_safe_path(self._path):
            raise BackingStoreError("Path traversal detected")

        logger.info(f"JsonFileStore initialized: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def keys(self) -> Iterator[str]:
        return iter(list(self._read()))

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            error_msg = f"Corrupted store file {self._path}: {e}"
            logger.error(error_msg)
            raise BackingStoreError(error_msg) from e
        except OSError as e:
            error_msg = f"Failed to read store file {self._path}: {e}"
            logger.error(error_msg)
            raise BackingStoreError(error_msg) from e

        if not isinstance(data, dict):
            error_msg = f"Corrupted store file {self._path}: top level is not an object"
            logger.error(error_msg)
            raise BackingStoreError(error_msg)

        return data

    def _write(self, data: Dict[str, Any]) -> None:
        temp_path = self._path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_path.replace(self._path)
        except (OSError, TypeError, ValueError) as e:
            error_msg = f"Failed to write store file {self._path}: {e}"
            logger.error(error_msg)
            raise BackingStoreError(error_msg) from e

    def _is_safe_path(self, path: Path) -> bool:
        """
        Check if path is safe (within data directory).

        Args:
            path: Path to check

        Returns:
            True if safe, False if potential traversal attack
        """
        try:
            resolved = path.resolve(strict=False)
            return resolved.parent == self._data_dir
        except (RuntimeError, OSError):
            return False
