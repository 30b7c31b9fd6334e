"""Round-trips a creator configuration through a flat key-value store.

Layout of the namespace:

- ``destination_location``: the destination container location.
- ``destination_name``: the destination collection name.
- ``source_location_{i}`` / ``source_count_{i}``: the i-th source entry,
  1-based. The number of entries is not stored; loading probes sequential
  keys until a location is missing.

The presence of ``destination_location`` marks that a configuration has been
saved before, so a user who removed every source row gets zero rows back
rather than the first-run default.
"""

from __future__ import annotations

from collections.abc import Sequence
import math
from typing import Any

from loguru import logger

from core.errors import ConfigurationError
from core.models import Configuration, DestinationSelection, Location, PopupItem, SourceEntry
from core.services.interfaces import PreferenceStore

DESTINATION_LOCATION_KEY = "destination_location"
DESTINATION_NAME_KEY = "destination_name"
SOURCE_LOCATION_PREFIX = "source_location_"
SOURCE_COUNT_PREFIX = "source_count_"

DEFAULT_COUNT: float = 10


def is_member(location: Location, items: Sequence[PopupItem]) -> bool:
    """Return True when `location` is one of the selectable `items`."""
    return any(item.value == location for item in items)


def _parse_count(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


class PreferenceCodec:
    """Saves and loads `Configuration` objects to a `PreferenceStore`."""

    def __init__(self, store: PreferenceStore, default_count: float = DEFAULT_COUNT) -> None:
        self._store = store
        self._default_count = default_count

    def save(self, config: Configuration) -> None:
        """Replace everything in the namespace with `config` and flush it."""
        if config.destination is None:
            raise ValueError("Configuration has no destination to save")

        # Clear first so a shorter list does not leave stale trailing rows.
        self._store.clear()
        self._store.set(DESTINATION_LOCATION_KEY, config.destination.location.to_pref())
        self._store.set(DESTINATION_NAME_KEY, config.destination.name)
        for i, entry in enumerate(config.sources, start=1):
            self._store.set(f"{SOURCE_LOCATION_PREFIX}{i}", entry.location.to_pref())
            self._store.set(f"{SOURCE_COUNT_PREFIX}{i}", entry.requested_count)
        self._store.flush()
        logger.info(
            "Saved configuration: {} sources, destination '{}'",
            len(config.sources),
            config.destination.name,
        )

    def load(
        self,
        current_sources: Sequence[PopupItem],
        current_destinations: Sequence[PopupItem],
        default_name: str,
    ) -> Configuration:
        """Load the saved configuration, validated against the live catalog.

        Args:
            current_sources: Selectable source collections right now.
            current_destinations: Selectable destination containers right now.
            default_name: Destination name used when none was saved.

        Entries referring to collections that no longer exist are dropped. An
        unknown destination falls back to the first available one. On first
        run a single default entry is produced.
        """
        if not current_destinations:
            raise ConfigurationError("No destinations found")

        first_run = self._store.get(DESTINATION_LOCATION_KEY) is None
        sources: list[SourceEntry] = []
        if first_run:
            if not current_sources:
                raise ConfigurationError("No collections found to sample from.")
            sources.append(self.default_entry(current_sources))
        else:
            sources = self._load_sources(current_sources)

        destination = Location.from_pref(self._store.get(DESTINATION_LOCATION_KEY))
        if destination is None or not is_member(destination, current_destinations):
            destination = current_destinations[0].value

        name = self._store.get(DESTINATION_NAME_KEY)
        if not isinstance(name, str) or not name.strip():
            name = default_name

        return Configuration(
            sources=sources,
            destination=DestinationSelection(location=destination, name=name.strip()),
        )

    def default_entry(self, current_sources: Sequence[PopupItem]) -> SourceEntry:
        """Return a new entry for the first available source and the default count."""
        return SourceEntry(location=current_sources[0].value, requested_count=self._default_count)

    def _load_sources(self, current_sources: Sequence[PopupItem]) -> list[SourceEntry]:
        sources: list[SourceEntry] = []
        i = 1
        while True:
            raw_location = self._store.get(f"{SOURCE_LOCATION_PREFIX}{i}")
            if raw_location is None:
                break

            location = Location.from_pref(raw_location)
            count = _parse_count(self._store.get(f"{SOURCE_COUNT_PREFIX}{i}"))
            if location is None or count is None:
                logger.warning("Dropping malformed saved source {}: {}", i, raw_location)
            elif not is_member(location, current_sources):
                logger.info("Dropping saved source {}: collection no longer exists", i)
            else:
                sources.append(SourceEntry(location=location, requested_count=count))
            i += 1
        return sources
