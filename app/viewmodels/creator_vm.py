"""ViewModel orchestrating one collection-creator editing session."""

from __future__ import annotations

from enum import Enum
import random

from loguru import logger

from app.viewmodels.source_row_vm import CountRefresh, RowView, SourceRowVM
from core.errors import (
    CatalogWriteError,
    CollectionCreationError,
    ConfigurationError,
    SessionClosedError,
    ValidationError,
)
from core.models import Configuration, DestinationSelection, Location, PopupItem
from core.services.catalog_service import CatalogService
from core.services.destination_service import DestinationService
from core.services.interfaces import (
    CommitResult,
    DestinationAction,
    PhotoStore,
    PreferenceStore,
    Prompter,
)
from core.services.preference_codec import DEFAULT_COUNT, PreferenceCodec, is_member

SMART_COLLISION_MESSAGE = (
    "A smart collection with this name already exists and cannot be overwritten."
)


class EditState(Enum):
    EDITING = "editing"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Transition(Enum):
    """What the host must do after an action."""

    REFRESH = "refresh"  # rebuild the view and present it again
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class CreatorVM:
    """Collection creator view-model.

    Holds the source rows and the destination selection for one session.
    Actions that change the number of rows invalidate the current view
    (`needs_rebuild`); value edits inside a row do not. `confirm` and `cancel`
    end the session.
    """

    def __init__(
        self,
        store: PhotoStore,
        codec: PreferenceCodec,
        source_items: list[PopupItem],
        destination_items: list[PopupItem],
        config: Configuration,
        destinations: DestinationService | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Create a CreatorVM.

        Args:
            store: Photo Store the session reads from and commits to.
            codec: Preference codec used to save the configuration on commit.
            source_items: Selectable source collections.
            destination_items: Selectable destination containers.
            config: Initial configuration, normally from `codec.load`.
            destinations: Destination service (defaults to one over `store`).
            rng: Random source for sampling.
        """
        if not source_items:
            raise ConfigurationError("No collections found to sample from.")
        if not destination_items or config.destination is None:
            raise ConfigurationError("No destinations found")

        self._store = store
        self._codec = codec
        self._source_items = list(source_items)
        self._destination_items = list(destination_items)
        self._destinations = destinations or DestinationService(store)
        self._rng = rng
        self._rows = [SourceRowVM.from_entry(entry) for entry in config.sources]
        self._destination = config.destination
        self._state = EditState.EDITING
        self._needs_rebuild = True
        self._view_generation = 0
        self.last_result: CommitResult | None = None

    @classmethod
    def start(
        cls,
        store: PhotoStore,
        prefs: PreferenceStore,
        default_name: str,
        default_count: float = DEFAULT_COUNT,
        rng: random.Random | None = None,
    ) -> CreatorVM:
        """Enumerate the catalog, load saved preferences and open a session.

        Raises:
            ConfigurationError: There is nothing to sample from or nowhere to
                create the collection.
        """
        catalog = CatalogService(store)
        source_items = catalog.list_source_collections()
        if not source_items:
            raise ConfigurationError("No collections found to sample from.")
        destination_items = catalog.list_destination_sets()

        codec = PreferenceCodec(prefs, default_count=default_count)
        config = codec.load(source_items, destination_items, default_name)
        logger.info(
            "Session started | sources available={} destinations={} rows={}",
            len(source_items),
            len(destination_items),
            len(config.sources),
        )
        return cls(store, codec, source_items, destination_items, config, rng=rng)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def state(self) -> EditState:
        return self._state

    @property
    def rows(self) -> tuple[SourceRowVM, ...]:
        return tuple(self._rows)

    @property
    def destination(self) -> DestinationSelection:
        return self._destination

    @property
    def source_items(self) -> list[PopupItem]:
        return list(self._source_items)

    @property
    def destination_items(self) -> list[PopupItem]:
        return list(self._destination_items)

    @property
    def needs_rebuild(self) -> bool:
        """True when the row count changed since the last `prepare_view`."""
        return self._needs_rebuild

    @property
    def view_generation(self) -> int:
        """Number of views prepared so far in this session."""
        return self._view_generation

    def configuration(self) -> Configuration:
        """Snapshot of the current rows and destination."""
        return Configuration(
            sources=[row.to_entry() for row in self._rows], destination=self._destination
        )

    def prepare_view(self) -> list[RowView]:
        """Count totals synchronously and return the row projections to render.

        Totals are fetched here, blocking, so a freshly built view never shows
        the pending marker for rows that already existed. Rows that already
        hold a total keep it; only unset or pending totals are recounted.
        """
        self._require_editing()
        for row in self._rows:
            if row.needs_total():
                row.refresh_total(self._store)
        self._needs_rebuild = False
        self._view_generation += 1
        logger.debug("View {} prepared with {} rows", self._view_generation, len(self._rows))
        return [row.view() for row in self._rows]

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------
    def add_row(self) -> Transition:
        """Append a default source row."""
        self._require_editing()
        self._rows.append(SourceRowVM.from_entry(self._codec.default_entry(self._source_items)))
        logger.info("Source row added (rows={})", len(self._rows))
        return self._refresh()

    def remove_row(self, index: int) -> Transition:
        """Remove the row at `index` (0-based)."""
        self._require_editing()
        if not 0 <= index < len(self._rows):
            raise IndexError(f"No source row {index}")
        del self._rows[index]
        logger.info("Source row {} removed (rows={})", index, len(self._rows))
        return self._refresh()

    # ------------------------------------------------------------------
    # Value edits
    # ------------------------------------------------------------------
    def set_row_location(self, index: int, location: Location) -> CountRefresh | None:
        """Select a collection for a row; returns the recount to schedule."""
        self._require_editing()
        if not is_member(location, self._source_items):
            raise ValidationError(f"Unknown source collection {location}")
        return self._rows[index].set_location(location)

    def set_row_count(self, index: int, value: object) -> None:
        self._require_editing()
        self._rows[index].set_requested_count(value)

    def set_destination_location(self, location: Location) -> None:
        self._require_editing()
        if not is_member(location, self._destination_items):
            raise ValidationError(f"Unknown destination {location}")
        self._destination = DestinationSelection(location=location, name=self._destination.name)

    def set_destination_name(self, name: str) -> None:
        self._require_editing()
        trimmed = str(name).strip()
        if not trimmed:
            raise ValidationError("Collection Name cannot be empty")
        self._destination = DestinationSelection(location=self._destination.location, name=trimmed)

    def validate(self) -> list[str]:
        """Return the problems that block `confirm`; empty when valid."""
        problems: list[str] = []
        for i, row in enumerate(self._rows, start=1):
            if row.requested_count < 0:
                problems.append(f"Row {i}: Photos must be a non-negative number")
        if not self._destination.name.strip():
            problems.append("Collection Name cannot be empty")
        return problems

    # ------------------------------------------------------------------
    # Terminal actions
    # ------------------------------------------------------------------
    def confirm(self, prompter: Prompter) -> Transition:
        """Resolve the destination, commit the sample and save preferences.

        Returns `Transition.REFRESH` when the user must keep editing (smart
        collection collision, declined overwrite, failed commit), otherwise
        `Transition.CONFIRMED`.

        Raises:
            ValidationError: An input field is invalid.
        """
        self._require_editing()
        problems = self.validate()
        if problems:
            raise ValidationError("; ".join(problems))

        plan = self._destinations.plan_destination(
            self._destination.location, self._destination.name
        )
        if plan.action is DestinationAction.REJECT:
            logger.warning("Destination '{}' is a smart collection", plan.name)
            prompter.show_error("Error", SMART_COLLISION_MESSAGE)
            return self._refresh()
        if plan.action is DestinationAction.OVERWRITE and not prompter.confirm_replace(plan.name):
            logger.info("Replacement of '{}' declined", plan.name)
            return self._refresh()

        config = self.configuration()
        try:
            result = self._destinations.execute_commit(plan, config.sources, self._rng)
        except (CatalogWriteError, CollectionCreationError, OSError) as ex:
            logger.exception("Commit failed: {}", ex)
            prompter.show_error("Error", str(ex))
            return self._refresh()

        try:
            self._codec.save(config)
        except OSError as ex:
            # The collection already exists; only the remembered settings are lost.
            logger.exception("Saving preferences failed: {}", ex)
            prompter.show_error("Preferences", f"Could not save settings:\n{ex}")
        self._destinations.activate(plan)
        self.last_result = result
        self._state = EditState.CONFIRMED
        logger.info("Session confirmed: '{}' with {} photos", plan.name, result.photo_count)
        return Transition.CONFIRMED

    def cancel(self) -> Transition:
        """End the session without touching the catalog or preferences."""
        self._require_editing()
        self._state = EditState.CANCELLED
        logger.info("Session cancelled")
        return Transition.CANCELLED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _refresh(self) -> Transition:
        self._needs_rebuild = True
        return Transition.REFRESH

    def _require_editing(self) -> None:
        if self._state is not EditState.EDITING:
            raise SessionClosedError(f"Session already {self._state.value}")
