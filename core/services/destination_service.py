"""Destination planning and commit service.

Provides a high-level API to decide whether a destination name creates a new
collection, overwrites an existing ordinary one, or is rejected because a smart
collection already owns the name, and to execute the commit inside one catalog
write transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
import random

from loguru import logger

from core.errors import CollectionCreationError, DestinationPolicyError
from core.models import CatalogNode, Location, SourceEntry
from core.services.interfaces import CommitResult, DestinationAction, DestinationPlan, PhotoStore
from core.services.sampling_service import SamplingService

WRITE_ACTION_NAME = "Create Collection"


class DestinationService:
    """Coordinates destination resolution, sampling and population."""

    def __init__(self, store: PhotoStore, sampler: SamplingService | None = None) -> None:
        self._store = store
        self._sampler = sampler or SamplingService(store)

    def plan_destination(self, parent: Location, name: str) -> DestinationPlan:
        """Compute what committing to `name` under `parent` would do."""
        name = name.strip()
        existing = self._store.find_collection_by_name(parent, name)
        if existing is None:
            action = DestinationAction.CREATE
        elif existing.is_smart:
            action = DestinationAction.REJECT
        else:
            action = DestinationAction.OVERWRITE
        logger.debug("Destination plan for '{}' in {}: {}", name, parent, action.value)
        return DestinationPlan(parent=parent, name=name, action=action, existing=existing)

    def execute_commit(
        self,
        plan: DestinationPlan,
        entries: Sequence[SourceEntry],
        rng: random.Random | None = None,
    ) -> CommitResult:
        """Create or clear the destination and fill it with a fresh sample.

        Everything happens in one write transaction, so a failure leaves the
        catalog as it was.

        Raises:
            DestinationPolicyError: The plan rejects the destination.
            CollectionCreationError: The collaborator could not create it.
        """
        if plan.action is DestinationAction.REJECT:
            raise DestinationPolicyError(
                "A smart collection with this name already exists and cannot be overwritten."
            )

        with self._store.write_transaction(WRITE_ACTION_NAME):
            destination = self._prepare(plan)
            photos = self._sampler.sample(entries, rng)
            if photos:
                self._store.add_photos(destination.location, photos)

        logger.info(
            "Collection '{}' {} with {} photos",
            destination.name,
            "replaced" if plan.existing is not None else "created",
            len(photos),
        )
        return CommitResult(
            collection=destination, photo_count=len(photos), replaced=plan.existing is not None
        )

    def activate(self, plan: DestinationPlan) -> CatalogNode | None:
        """Look the destination up again by name and make it the active source."""
        collection = self._store.find_collection_by_name(plan.parent, plan.name)
        if collection is not None:
            self._store.set_active_collection(collection.location)
        return collection

    def _prepare(self, plan: DestinationPlan) -> CatalogNode:
        if plan.existing is not None:
            self._store.clear_collection(plan.existing.location)
            return plan.existing

        created = self._store.create_collection(plan.parent, plan.name)
        if created is None:
            raise CollectionCreationError(
                "An unknown error occurred while creating the destination collection."
            )
        return created
