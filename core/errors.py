"""Exception hierarchy for the collection creator."""

from __future__ import annotations


class CollectionCreatorError(Exception):
    """Base class for all custom errors raised by the collection creator."""


class ConfigurationError(CollectionCreatorError):
    """Raised when a session cannot start (no sources or no destinations)."""


class ValidationError(CollectionCreatorError):
    """Raised when user input such as a count or a name is invalid."""


class DestinationPolicyError(CollectionCreatorError):
    """Raised when the destination name collides with a smart collection."""


class CatalogWriteError(CollectionCreatorError):
    """Raised when the catalog is mutated outside a write transaction."""


class CollectionCreationError(CollectionCreatorError):
    """Raised when the destination collection cannot be created."""


class SessionClosedError(CollectionCreatorError):
    """Raised when an action is invoked after the session has ended."""
