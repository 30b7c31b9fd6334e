"""JSON persistence for the photo catalog.

The catalog file holds publish services, photos and a flat list of nodes
(collection sets, collections and smart collections). Identifiers are unique
across the whole catalog. Rows that fail validation are logged and skipped on
load.

Mutations are only allowed inside `write_transaction`; a failing transaction
restores the state it started from and nothing is written to disk.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from core.errors import CatalogWriteError, CollectionCreationError
from core.models import CatalogNode, Location, Photo, PublishService
from infrastructure.utils import read_json_file, write_json_atomic

KIND_SET = "set"
KIND_COLLECTION = "collection"
KIND_SMART = "smart"
NODE_KINDS = {KIND_SET, KIND_COLLECTION, KIND_SMART}


@dataclass
class _Node:
    node_id: int
    kind: str
    name: str
    parent: int | None
    service: int | None
    photos: list[int] = field(default_factory=list)

    @property
    def location(self) -> Location:
        return Location(self.service, self.node_id)

    def to_catalog_node(self) -> CatalogNode:
        return CatalogNode(
            location=self.location,
            name=self.name,
            is_set=self.kind == KIND_SET,
            is_smart=self.kind == KIND_SMART,
        )


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected integer id, got {value!r}")
    return value


def _parse_node(row: dict[str, Any]) -> _Node:
    kind = str(row.get("kind", KIND_COLLECTION))
    if kind not in NODE_KINDS:
        raise ValueError(f"unknown node kind {kind!r}")
    node_id = _optional_int(row.get("id"))
    if node_id is None:
        raise ValueError("node without id")
    name = str(row.get("name", "")).strip()
    if not name:
        raise ValueError("node without name")
    photos = [int(p) for p in row.get("photos", []) or []]
    return _Node(
        node_id=node_id,
        kind=kind,
        name=name,
        parent=_optional_int(row.get("parent")),
        service=_optional_int(row.get("service")),
        photos=photos,
    )


class JsonCatalog:
    """Photo Store backed by an in-memory catalog, optionally saved as JSON."""

    def __init__(self, data: dict[str, Any] | None = None, path: Path | None = None) -> None:
        """Create a catalog from `data` (the file's JSON object).

        Args:
            data: Catalog payload; an empty catalog when None.
            path: File written after each successful write transaction.
        """
        self._path = path
        self._services: dict[int, PublishService] = {}
        self._photos: dict[int, Photo] = {}
        self._nodes: dict[int, _Node] = {}
        self._active: Location | None = None
        self._in_transaction = False
        self._load(data or {})

    @classmethod
    def open(cls, path: str | Path) -> JsonCatalog:
        """Load the catalog at `path`; a missing file yields an empty catalog."""
        path = Path(path)
        data = read_json_file(path)
        if data is None:
            logger.warning("Catalog file not found, starting empty: {}", path)
        catalog = cls(data, path=path)
        logger.info(
            "Opened catalog {} | services={} nodes={} photos={}",
            path,
            len(catalog._services),
            len(catalog._nodes),
            len(catalog._photos),
        )
        return catalog

    def save(self) -> None:
        """Write the catalog to its file, if it has one."""
        if self._path is None:
            return
        write_json_atomic(self._path, self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Return the catalog as a JSON-compatible object."""
        return {
            "services": [
                {"id": s.service_id, "name": s.name, "plugin_id": s.plugin_id}
                for s in self._services.values()
            ],
            "photos": [{"id": p.photo_id, "path": p.file_path} for p in self._photos.values()],
            "nodes": [
                {
                    "id": n.node_id,
                    "kind": n.kind,
                    "name": n.name,
                    "parent": n.parent,
                    "service": n.service,
                    "photos": list(n.photos),
                }
                for n in self._nodes.values()
            ],
            "active": self._active.to_pref() if self._active else None,
        }

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    def get_child_collections(self, parent: Location) -> list[CatalogNode]:
        return [n.to_catalog_node() for n in self._children(parent) if n.kind != KIND_SET]

    def get_child_sets(self, parent: Location) -> list[CatalogNode]:
        return [n.to_catalog_node() for n in self._children(parent) if n.kind == KIND_SET]

    def get_publish_services(self) -> list[PublishService]:
        return list(self._services.values())

    def get_collection(self, location: Location) -> CatalogNode | None:
        node = self._collection_node(location)
        return node.to_catalog_node() if node else None

    def get_photos(self, location: Location) -> list[Photo]:
        node = self._collection_node(location)
        if node is None:
            return []
        return [self._photos[pid] for pid in node.photos if pid in self._photos]

    def count_photos(self, location: Location) -> int:
        return len(self.get_photos(location))

    def find_collection_by_name(self, parent: Location, name: str) -> CatalogNode | None:
        for node in self._children(parent):
            if node.kind != KIND_SET and node.name == name:
                return node.to_catalog_node()
        return None

    @property
    def active_collection(self) -> Location | None:
        """Location of the collection most recently made active."""
        return self._active

    # ------------------------------------------------------------------
    # Write access
    # ------------------------------------------------------------------
    @contextmanager
    def write_transaction(self, action_name: str) -> Iterator[None]:
        """Run the block with write access and save the catalog.

        If the block raises, or the file cannot be written, the in-memory
        state is restored. A failed save is reported as `CatalogWriteError`.
        """
        if self._in_transaction:
            raise CatalogWriteError("A write transaction is already in progress")
        snapshot = (copy.deepcopy(self._nodes), copy.deepcopy(self._photos))
        self._in_transaction = True
        logger.debug("Begin write transaction: {}", action_name)
        try:
            yield
            try:
                self.save()
            except OSError as ex:
                raise CatalogWriteError(f"Could not save the catalog: {ex}") from ex
        except BaseException:
            self._nodes, self._photos = snapshot
            logger.warning("Rolled back write transaction: {}", action_name)
            raise
        finally:
            self._in_transaction = False
        logger.debug("Committed write transaction: {}", action_name)

    def create_collection(self, parent: Location, name: str) -> CatalogNode | None:
        """Create an empty collection; returns None if the name is taken."""
        self._require_write()
        if parent.service_id is not None and parent.service_id not in self._services:
            raise CollectionCreationError("No service found for parent location")
        if parent.container_id is not None and self._set_node(parent) is None:
            raise CollectionCreationError("No collection set found for parent location")
        if self.find_collection_by_name(parent, name) is not None:
            return None

        node = _Node(
            node_id=self._next_id(),
            kind=KIND_COLLECTION,
            name=name,
            parent=parent.container_id,
            service=parent.service_id,
        )
        self._nodes[node.node_id] = node
        return node.to_catalog_node()

    def clear_collection(self, location: Location) -> None:
        self._writable_collection(location).photos.clear()

    def add_photos(self, location: Location, photos: Iterable[Photo]) -> None:
        node = self._writable_collection(location)
        present = set(node.photos)
        for photo in photos:
            if photo.photo_id not in self._photos:
                raise CatalogWriteError(f"Unknown photo id {photo.photo_id}")
            if photo.photo_id not in present:
                node.photos.append(photo.photo_id)
                present.add(photo.photo_id)

    def set_active_collection(self, location: Location) -> None:
        if self._collection_node(location) is None:
            raise CatalogWriteError(f"No collection at {location}")
        self._active = location

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _load(self, data: dict[str, Any]) -> None:
        for row in data.get("services", []) or []:
            try:
                service = PublishService(
                    service_id=int(row["id"]),
                    name=str(row.get("name", "")),
                    plugin_id=str(row.get("plugin_id", "")),
                )
            except (KeyError, TypeError, ValueError) as ex:
                logger.error("Catalog service error: {} | row={}", ex, row)
                continue
            self._services[service.service_id] = service

        for row in data.get("photos", []) or []:
            try:
                photo = Photo(photo_id=int(row["id"]), file_path=str(row.get("path", "")))
            except (KeyError, TypeError, ValueError) as ex:
                logger.error("Catalog photo error: {} | row={}", ex, row)
                continue
            self._photos[photo.photo_id] = photo

        for row in data.get("nodes", []) or []:
            try:
                node = _parse_node(row)
            except (AttributeError, TypeError, ValueError) as ex:
                logger.error("Catalog node error: {} | row={}", ex, row)
                continue
            self._nodes[node.node_id] = node

        self._active = Location.from_pref(data.get("active"))

    def _require_write(self) -> None:
        if not self._in_transaction:
            raise CatalogWriteError("Catalog mutation outside a write transaction")

    def _next_id(self) -> int:
        used = [*self._nodes, *self._services, *self._photos, 0]
        return max(used) + 1

    def _root_exists(self, location: Location) -> bool:
        return location.service_id is None or location.service_id in self._services

    def _children(self, parent: Location) -> list[_Node]:
        if parent.container_id is None:
            if not self._root_exists(parent):
                return []
        elif self._set_node(parent) is None:
            return []
        return [
            n
            for n in self._nodes.values()
            if n.parent == parent.container_id and n.service == parent.service_id
        ]

    def _set_node(self, location: Location) -> _Node | None:
        if location.container_id is None:
            return None
        node = self._nodes.get(location.container_id)
        if node is None or node.kind != KIND_SET or node.service != location.service_id:
            return None
        return node

    def _collection_node(self, location: Location) -> _Node | None:
        if location.container_id is None:
            return None
        node = self._nodes.get(location.container_id)
        if node is None or node.kind == KIND_SET or node.service != location.service_id:
            return None
        if not self._root_exists(location):
            return None
        return node

    def _writable_collection(self, location: Location) -> _Node:
        self._require_write()
        node = self._collection_node(location)
        if node is None:
            raise CatalogWriteError(f"No collection at {location}")
        if node.kind == KIND_SMART:
            raise CatalogWriteError(f"Smart collection '{node.name}' cannot be modified")
        return node
