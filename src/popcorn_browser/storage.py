"""Durable key-value storage for application state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from platformdirs import user_data_dir

from popcorn_browser.models import CONFIG_APP_NAME

logger = logging.getLogger(__name__)

STORE_FILENAME = "storage.json"


class StorageError(OSError):
    """A durable read or write could not be completed."""


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value store that survives process restarts."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``. Raises StorageError on failure."""
        ...


def get_data_dir() -> Path:
    """Get the per-user data directory.

    - Linux: ~/.local/share/popcorn-browser
    - macOS: ~/Library/Application Support/popcorn-browser
    - Windows: %LOCALAPPDATA%/popcorn-browser
    """
    return Path(user_data_dir(CONFIG_APP_NAME))


def get_store_path() -> Path:
    return get_data_dir() / STORE_FILENAME


def atomic_write_text(path: Path, text: str, prefix: str = ".store-") -> None:
    """Write ``text`` to ``path`` via tempfile + os.replace().

    A crash mid-write leaves the previous file intact.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=prefix)
    closed = False
    try:
        os.write(fd, text.encode("utf-8"))
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class MemoryStore:
    """In-process store, useful for embedding and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """Key-value store backed by one JSON object file.

    Every ``set`` rewrites the whole file atomically. A missing or corrupt
    file reads as an empty store.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_store_path()

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Store file %s is not valid JSON, treating as empty: %s", self.path, e)
            return {}
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            logger.warning("Store file %s is not a JSON object, treating as empty", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
            data[key] = value
            atomic_write_text(self.path, json.dumps(data, indent=2, ensure_ascii=False))
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e


__all__ = [
    "STORE_FILENAME",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
    "atomic_write_text",
    "get_data_dir",
    "get_store_path",
]
