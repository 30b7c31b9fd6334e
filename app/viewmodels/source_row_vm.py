"""View model for one source row of the creator dialog."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import Any

from core.errors import ValidationError
from core.models import Location, SourceEntry
from core.services.catalog_service import PENDING_TOTAL, format_total
from core.services.interfaces import PhotoStore

_tokens = count(1)


def parse_count(value: Any) -> float:
    """Parse a requested count from user input; must be a non-negative number."""
    if isinstance(value, bool):
        raise ValidationError("Photos must be a non-negative number")
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as ex:
        raise ValidationError("Photos must be a non-negative number") from ex
    if number != number or number < 0 or number == float("inf"):
        raise ValidationError("Photos must be a non-negative number")
    return number


@dataclass(frozen=True)
class CountRefresh:
    """Follow-up work: count the photos at `location` and report to the row.

    The caller decides where the count runs. `token` lets the row ignore a
    result that arrives after the location changed again.
    """

    row: SourceRowVM
    location: Location
    token: int


@dataclass(frozen=True)
class RowView:
    """Read-only projection of a row for rendering."""

    location: Location
    requested_count: float
    total_text: str

    @property
    def is_pending(self) -> bool:
        return self.total_text == PENDING_TOTAL


class SourceRowVM:
    """Mutable state of one source row.

    Mutations are explicit methods. Changing the location returns a
    `CountRefresh` describing the asynchronous recount the caller must schedule;
    the row itself never starts background work.
    """

    def __init__(self, location: Location, requested_count: float) -> None:
        self._location = location
        self._requested_count = parse_count(requested_count)
        self._total_text = ""
        self._token = 0

    @classmethod
    def from_entry(cls, entry: SourceEntry) -> SourceRowVM:
        return cls(entry.location, entry.requested_count)

    @property
    def location(self) -> Location:
        return self._location

    @property
    def requested_count(self) -> float:
        return self._requested_count

    @property
    def total_text(self) -> str:
        """`of N`, the pending marker, or empty when never counted."""
        return self._total_text

    def to_entry(self) -> SourceEntry:
        return SourceEntry(location=self._location, requested_count=self._requested_count)

    def view(self) -> RowView:
        return RowView(self._location, self._requested_count, self._total_text)

    def set_location(self, location: Location) -> CountRefresh | None:
        """Select another collection; returns the recount to schedule, if any."""
        if location == self._location:
            return None
        self._location = location
        self._total_text = PENDING_TOTAL
        self._token = next(_tokens)
        return CountRefresh(row=self, location=location, token=self._token)

    def set_requested_count(self, value: Any) -> None:
        """Validate and store a new requested count."""
        self._requested_count = parse_count(value)

    def needs_total(self) -> bool:
        return self._total_text in ("", PENDING_TOTAL)

    def apply_total(self, refresh: CountRefresh, total: int) -> bool:
        """Store the result of `refresh`; stale results are ignored."""
        if refresh.row is not self or refresh.token != self._token:
            return False
        self._total_text = format_total(total)
        return True

    def refresh_total(self, store: PhotoStore) -> None:
        """Recount synchronously, superseding any pending asynchronous count."""
        self._token = next(_tokens)
        self._total_text = format_total(store.count_photos(self._location))

    def __repr__(self) -> str:
        return (
            f"SourceRowVM(location={self._location!r}, "
            f"requested_count={self._requested_count!r}, total_text={self._total_text!r})"
        )
