"""Utilities for reading and atomically writing JSON files.

The catalog and preference stores both persist through these helpers so a
crash mid-write never leaves a truncated file behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger


def read_json_file(path: Path) -> dict[str, Any] | None:
    """Return the JSON object stored at `path`.

    Returns None when the file does not exist. Raises ValueError when the file
    exists but does not hold a JSON object.
    """
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as ex:
            raise ValueError(f"Invalid JSON data in {path}: {ex}") from ex
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write `data` to `path` through a temporary file and an atomic replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    payload = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)
    logger.debug("Wrote {} ({} bytes)", path, len(payload))
