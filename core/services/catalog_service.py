"""Builds the selectable source and destination lists from a Photo Store.

Titles are display paths only; identity is always the `Location`.
"""

from __future__ import annotations

from core.models import Location, PopupItem
from core.services.interfaces import PhotoStore

PATH_SEPARATOR = " ⮞ "
SMART_COLLECTION_INDICATOR = " ⚙"
LOCAL_TITLE = "Local"
PENDING_TOTAL = "..."


def format_total(count: int) -> str:
    """Format a total photo count for display, e.g. ``of 1,234``."""
    return f"of {count:,}"


def _by_title(item: PopupItem) -> str:
    return item.title


class CatalogService:
    """Enumerates source collections and destination containers."""

    def __init__(self, store: PhotoStore) -> None:
        self._store = store

    def list_source_collections(self) -> list[PopupItem]:
        """Return every local collection (smart ones included), sorted by path."""
        items = self._collect_local(Location(), "")
        items.sort(key=_by_title)
        return items

    def list_destination_sets(self) -> list[PopupItem]:
        """Return every place a new collection can be created.

        The local root comes first, then its nested sets; each publish service
        follows in name order with its own nested sets.
        """
        items = self._service_sets(None, LOCAL_TITLE)

        services = sorted(self._store.get_publish_services(), key=lambda s: s.name)
        for service in services:
            title = f"{service.name} ({service.plugin_id})"
            items.extend(self._service_sets(service.service_id, title))
        return items

    def _collect_local(self, parent: Location, prefix: str) -> list[PopupItem]:
        items: list[PopupItem] = []
        for collection in self._store.get_child_collections(parent):
            title = prefix + collection.name
            if collection.is_smart:
                title += SMART_COLLECTION_INDICATOR
            items.append(PopupItem(value=collection.location, title=title))

        for child_set in self._store.get_child_sets(parent):
            nested_prefix = prefix + child_set.name + PATH_SEPARATOR
            items.extend(self._collect_local(child_set.location, nested_prefix))
        return items

    def _service_sets(self, service_id: int | None, title: str) -> list[PopupItem]:
        root = PopupItem(value=Location(service_id, None), title=title)
        nested = self._nested_sets(root.value, "  ")
        nested.sort(key=_by_title)
        return [root, *nested]

    def _nested_sets(self, parent: Location, prefix: str) -> list[PopupItem]:
        items: list[PopupItem] = []
        for child_set in self._store.get_child_sets(parent):
            path = prefix + PATH_SEPARATOR + child_set.name
            items.append(PopupItem(value=child_set.location, title=path))
            items.extend(self._nested_sets(child_set.location, path))
        return items
