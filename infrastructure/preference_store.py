"""JSON file backed preference store scoped to one namespace.

All namespaces share a single file. Writes are buffered in memory and only
reach the disk on `flush()`, so a session that is cancelled never touches the
file.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

from loguru import logger

from infrastructure.utils import read_json_file, write_json_atomic


class JsonPreferenceStore:
    """Flat key-value preferences for one namespace."""

    def __init__(self, path: str | Path, namespace: str) -> None:
        self._path = Path(path)
        self._namespace = namespace
        self._values: dict[str, Any] = {}
        self._dirty = False
        try:
            data = read_json_file(self._path) or {}
        except (OSError, ValueError) as ex:
            logger.warning("Ignoring unreadable preferences {}: {}", self._path, ex)
            data = {}
        section = data.get(namespace)
        if isinstance(section, dict):
            self._values = dict(section)

    @property
    def namespace(self) -> str:
        return self._namespace

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value stored under `key`, or `default`."""
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store `value` under `key`; None deletes the key."""
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value
        self._dirty = True

    def keys(self) -> Iterator[str]:
        return iter(list(self._values))

    def clear(self) -> None:
        """Delete every key in this namespace."""
        for key in self.keys():
            self.set(key, None)

    def flush(self) -> None:
        """Merge this namespace into the file and write it atomically."""
        if not self._dirty:
            return
        try:
            data = read_json_file(self._path) or {}
        except ValueError as ex:
            logger.warning("Overwriting unreadable preferences {}: {}", self._path, ex)
            data = {}
        data[self._namespace] = dict(self._values)
        write_json_atomic(self._path, data)
        self._dirty = False
        logger.debug("Preferences flushed: {} ({} keys)", self._namespace, len(self._values))
