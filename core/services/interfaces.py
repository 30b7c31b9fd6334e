"""Core service interfaces and shared data structures.

This module defines the collaborator protocols the core depends on (the
Photo Store, the preference store and the user prompter) together with the
simple dataclasses that describe destination planning and commit results used
across the infrastructure and UI layers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from core.models import CatalogNode, Location, Photo, PublishService


class DestinationAction(Enum):
    """What committing to a destination name will do."""

    CREATE = "create"
    OVERWRITE = "overwrite"
    REJECT = "reject"


@dataclass
class DestinationPlan:
    """Planned destination handling for a chosen container and name.

    Attributes:
        parent: Location of the container the collection lives in.
        name: Trimmed collection name.
        action: Whether to create, overwrite or reject.
        existing: The colliding collection, when one exists.
    """

    parent: Location
    name: str
    action: DestinationAction
    existing: CatalogNode | None = None


@dataclass
class CommitResult:
    """Outcome of a successful commit.

    Attributes:
        collection: The destination collection that now holds the sample.
        photo_count: Number of photos written to it.
        replaced: Whether an existing collection was cleared and reused.
    """

    collection: CatalogNode
    photo_count: int
    replaced: bool


class PhotoStore(Protocol):
    """Catalog collaborator providing collections, photos and write access."""

    def get_child_collections(self, parent: Location) -> list[CatalogNode]:
        """Return collections directly under `parent` (a set or service root)."""
        ...

    def get_child_sets(self, parent: Location) -> list[CatalogNode]:
        """Return collection sets directly under `parent`."""
        ...

    def get_publish_services(self) -> list[PublishService]:
        """Return every publish service in the catalog."""
        ...

    def get_collection(self, location: Location) -> CatalogNode | None:
        """Return the collection at `location`, or None if it does not exist."""
        ...

    def get_photos(self, location: Location) -> list[Photo]:
        """Return a fresh list of the photos in the collection at `location`."""
        ...

    def count_photos(self, location: Location) -> int:
        """Return the number of photos in the collection at `location`."""
        ...

    def find_collection_by_name(self, parent: Location, name: str) -> CatalogNode | None:
        """Return the child collection of `parent` named exactly `name`."""
        ...

    def create_collection(self, parent: Location, name: str) -> CatalogNode | None:
        """Create an empty collection named `name` under `parent`."""
        ...

    def clear_collection(self, location: Location) -> None:
        """Remove every photo from the collection at `location`."""
        ...

    def add_photos(self, location: Location, photos: Iterable[Photo]) -> None:
        """Append `photos` to the collection at `location`."""
        ...

    def set_active_collection(self, location: Location) -> None:
        """Make the collection at `location` the active source."""
        ...

    def write_transaction(self, action_name: str) -> AbstractContextManager[None]:
        """Return a context manager wrapping mutations in one atomic unit."""
        ...


class PreferenceStore(Protocol):
    """Flat key-value store scoped to a single namespace."""

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value stored under `key`, or `default`."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store `value` under `key`."""
        ...

    def keys(self) -> Iterator[str]:
        """Iterate over every key in the namespace."""
        ...

    def clear(self) -> None:
        """Delete every key in the namespace."""
        ...

    def flush(self) -> None:
        """Persist pending writes."""
        ...


class Prompter(Protocol):
    """Host callbacks used while confirming a session."""

    def confirm_replace(self, name: str) -> bool:
        """Ask whether an existing collection named `name` may be replaced."""
        ...

    def show_error(self, title: str, message: str) -> None:
        """Show a blocking error message."""
        ...
