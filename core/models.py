"""Core domain models for catalog locations, photos and creator configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Location:
    """Identity of a collection, a collection set or a service root.

    `service_id` is None for the local namespace; `container_id` is None for
    the root of that namespace. Equality is by identity fields only.
    """

    service_id: int | None = None
    container_id: int | None = None

    def to_pref(self) -> dict[str, Any]:
        """Serialize to the flat preference value (both keys always present)."""
        return {"service_id": self.service_id, "container_id": self.container_id}

    @classmethod
    def from_pref(cls, value: Any) -> Location | None:
        """Parse a preference value; return None when it is not a location."""
        if not isinstance(value, dict):
            return None
        if "service_id" not in value or "container_id" not in value:
            return None
        service_id = value.get("service_id")
        container_id = value.get("container_id")
        for part in (service_id, container_id):
            if part is not None and (not isinstance(part, int) or isinstance(part, bool)):
                return None
        return cls(service_id=service_id, container_id=container_id)


@dataclass(frozen=True)
class Photo:
    """A single catalog item."""

    photo_id: int
    file_path: str = ""


@dataclass(frozen=True)
class CatalogNode:
    """A collection or collection set as reported by the Photo Store."""

    location: Location
    name: str
    is_set: bool = False
    is_smart: bool = False


@dataclass(frozen=True)
class PublishService:
    """A named publish-style namespace holding its own collections and sets."""

    service_id: int
    name: str
    plugin_id: str = ""


@dataclass(frozen=True)
class PopupItem:
    """One selectable location together with its display path."""

    value: Location
    title: str


@dataclass
class SourceEntry:
    """A configured (collection, requested count) pair to sample from."""

    location: Location
    requested_count: float


@dataclass(frozen=True)
class DestinationSelection:
    """Destination container and the (trimmed) collection name to create."""

    location: Location
    name: str


@dataclass
class Configuration:
    """Ordered source entries plus the destination for one editing session."""

    sources: list[SourceEntry] = field(default_factory=list)
    destination: DestinationSelection | None = None
