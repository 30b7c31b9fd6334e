"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

from datetime import date
import json
from pathlib import Path
from typing import Any

DEFAULT_NAME_FORMAT = "{month} {day}, {year}"


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @property
    def base_dir(self) -> Path:
        """Directory holding the settings file; relative paths resolve here."""
        return self._path.parent

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_path(self, key: str, default: str | Path) -> Path:
        """Return dotted `key` as a path, resolved against `base_dir`."""
        raw = self.get(key, None) or default
        path = Path(str(raw)).expanduser()
        return path if path.is_absolute() else self.base_dir / path

    def get_float(self, key: str, default: float) -> float:
        """Return dotted `key` as a non-negative float, or `default`."""
        raw = self.get(key, default)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return default
        return value if value >= 0 else default

    def default_destination_name(self, today: date | None = None) -> str:
        """Format the default destination name, e.g. ``October 19, 2026``."""
        today = today or date.today()
        fmt = str(self.get("destination.default_name_format", DEFAULT_NAME_FORMAT))
        try:
            return fmt.format(month=today.strftime("%B"), day=today.day, year=today.year)
        except (KeyError, IndexError, ValueError):
            return DEFAULT_NAME_FORMAT.format(
                month=today.strftime("%B"), day=today.day, year=today.year
            )
