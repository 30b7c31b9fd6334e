from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]

# The project packages are namespace packages living at the repository root.
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.models import Location  # noqa: E402
from infrastructure.json_catalog import JsonCatalog  # noqa: E402
from infrastructure.preference_store import JsonPreferenceStore  # noqa: E402

SERVICE_ID = 900

# Ids of the nodes built by `catalog_data`.
TRAVEL = 100
BEACH = 101
HIKING = 102
FAMILY = 110
FIVE_STARS = 111
SLIDESHOWS = 120
EMPTY = 130
ALBUMS = 910


def local(container_id: int | None) -> Location:
    return Location(None, container_id)


def catalog_data() -> dict[str, Any]:
    """A small catalog: two nested collections, two root ones, a smart one."""
    return {
        "services": [{"id": SERVICE_ID, "name": "Flickr", "plugin_id": "com.example.flickr"}],
        "photos": [{"id": i, "path": f"photos/img_{i:03d}.jpg"} for i in range(1, 31)],
        "nodes": [
            {"id": TRAVEL, "kind": "set", "name": "Travel", "parent": None, "service": None},
            {
                "id": BEACH,
                "kind": "collection",
                "name": "Beach",
                "parent": TRAVEL,
                "service": None,
                "photos": list(range(1, 11)),
            },
            {
                "id": HIKING,
                "kind": "collection",
                "name": "Hiking",
                "parent": TRAVEL,
                "service": None,
                "photos": list(range(6, 16)),
            },
            {
                "id": FAMILY,
                "kind": "collection",
                "name": "Family",
                "parent": None,
                "service": None,
                "photos": list(range(16, 31)),
            },
            {
                "id": FIVE_STARS,
                "kind": "smart",
                "name": "Five Stars",
                "parent": None,
                "service": None,
                "photos": [1, 16],
            },
            {"id": SLIDESHOWS, "kind": "set", "name": "Slideshows", "parent": None, "service": None},
            {
                "id": EMPTY,
                "kind": "collection",
                "name": "Empty",
                "parent": SLIDESHOWS,
                "service": None,
                "photos": [],
            },
            {"id": ALBUMS, "kind": "set", "name": "Albums", "parent": None, "service": SERVICE_ID},
        ],
        "active": None,
    }


@pytest.fixture()
def catalog() -> JsonCatalog:
    """In-memory catalog not backed by a file."""
    return JsonCatalog(catalog_data())


@pytest.fixture()
def catalog_file(tmp_path: Path) -> JsonCatalog:
    """Catalog persisted to a temporary JSON file."""
    path = tmp_path / "catalog.json"
    catalog = JsonCatalog(catalog_data(), path=path)
    catalog.save()
    return catalog


@pytest.fixture()
def prefs(tmp_path: Path) -> JsonPreferenceStore:
    return JsonPreferenceStore(tmp_path / "preferences.json", namespace="test")


@pytest.fixture(scope="session", autouse=True)
def _qt_application():
    """Create one QApplication for the whole session.

    Qt allows a single application instance per process; the per-module `qapp`
    fixtures reuse it, so widget tests never run under a bare QCoreApplication.
    """
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        yield None
        return
    import os

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    yield QApplication.instance() or QApplication([])
