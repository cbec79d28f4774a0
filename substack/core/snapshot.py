# substack/core/snapshot.py
"""
Local key-value blob store used to cache lists between sessions.

A snapshot is the full list encoded as JSON under one key; every save
overwrites the previous blob wholesale.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar

from substack.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

KEY_PREFIX = "substack"


def snapshot_key(user_id: Optional[str], name: str) -> str:
    """Namespaced key, e.g. "substack.<user_id>.subscriptions" ("anonymous" without a user)."""
    return f"{KEY_PREFIX}.{user_id or 'anonymous'}.{name}"


class SnapshotStore(ABC):

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """The stored blob, or None if the key was never saved."""

    @abstractmethod
    def save(self, key: str, blob: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemorySnapshotStore(SnapshotStore):
    """Process-local store; used by tests and for sessions that should not touch disk."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[str]:
        with self._lock:
            return self._blobs.get(key)

    def save(self, key: str, blob: str) -> None:
        with self._lock:
            self._blobs[key] = blob

    def remove(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)


class JsonFileSnapshotStore(SnapshotStore):
    """One `<key>.json` file per key inside `directory`. Writes replace the file atomically."""

    def __init__(self, directory: str):
        self.directory = directory
        self._lock = threading.Lock()
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        safe_key = "".join(c if c.isalnum() or c in "._-" else "_" for c in key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def save(self, key: str, blob: str) -> None:
        path = self._path(key)
        with self._lock:
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(blob)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        with self._lock:
            if os.path.exists(path):
                os.remove(path)


def encode_list(items: List[Any]) -> str:
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False)


def decode_list(blob: str, from_dict: Callable[[Dict[str, Any]], T]) -> List[T]:
    return [from_dict(data) for data in json.loads(blob)]


def save_list(store: SnapshotStore, key: str, items: List[Any]) -> None:
    """Overwrites the snapshot under `key` with the full list."""
    store.save(key, encode_list(items))


def load_list(store: SnapshotStore, key: str, from_dict: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Decoded snapshot, or [] when it is missing or unreadable."""
    blob = store.load(key)
    if blob is None:
        return []
    try:
        return decode_list(blob, from_dict)
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Discarding unreadable snapshot '{key}': {e}")
        return []
