"""Sampling service drawing deduplicated random photos from source collections.

Each source entry asks for a possibly fractional number of photos. The
fractional part is the probability of drawing one extra photo, so the expected
number drawn equals the requested count. Photos already chosen for an earlier
entry are never chosen again within the same call.
"""

from __future__ import annotations

from collections.abc import Sequence
import math
import random

from loguru import logger

from core.models import Photo, SourceEntry
from core.services.interfaces import PhotoStore


def wanted_count(requested_count: float, rng: random.Random) -> int:
    """Resolve a requested count into the number of photos to draw.

    `10.4` yields 11 with probability 0.4 and 10 otherwise; `0.5` yields 0 or 1
    with equal probability. The random draw happens only when there is a
    fractional part.
    """
    base = math.floor(requested_count)
    frac = requested_count - base
    wanted = int(base)
    if frac > 0 and rng.random() < frac:
        wanted += 1
    return wanted


class SamplingService:
    """Samples photos from source entries without duplicates."""

    def __init__(self, store: PhotoStore) -> None:
        self._store = store

    def sample(
        self, entries: Sequence[SourceEntry], rng: random.Random | None = None
    ) -> list[Photo]:
        """Return a shuffled, duplicate-free sample for `entries`.

        Args:
            entries: Source entries, processed in order.
            rng: Random source; pass a seeded `random.Random` for reproducible
                draws. Defaults to a freshly seeded generator.

        Entries whose collection no longer exists, or whose wanted count is
        zero, contribute nothing. An exhausted entry silently yields fewer
        photos than requested.
        """
        rng = rng or random.Random()
        sampled: list[Photo] = []
        chosen: set[Photo] = set()

        for index, entry in enumerate(entries, start=1):
            collection = self._store.get_collection(entry.location)
            if collection is None:
                logger.debug("Source {} skipped: collection not found {}", index, entry.location)
                continue

            wanted = wanted_count(entry.requested_count, rng)
            if wanted <= 0:
                continue

            photos = self._store.get_photos(entry.location)
            taken = self._draw(photos, wanted, chosen, rng)
            sampled.extend(taken)
            logger.debug(
                "Source {} '{}': requested={} wanted={} taken={} of {}",
                index,
                collection.name,
                entry.requested_count,
                wanted,
                len(taken),
                len(photos),
            )

        rng.shuffle(sampled)
        logger.info("Sampled {} photos from {} sources", len(sampled), len(entries))
        return sampled

    @staticmethod
    def _draw(
        photos: list[Photo], wanted: int, chosen: set[Photo], rng: random.Random
    ) -> list[Photo]:
        """Partial in-place Fisher-Yates shuffle that skips already chosen photos."""
        taken: list[Photo] = []
        i, n = 0, len(photos)
        while i < n and len(taken) < wanted:
            j = rng.randint(i, n - 1)
            photos[i], photos[j] = photos[j], photos[i]
            candidate = photos[i]
            if candidate not in chosen:
                chosen.add(candidate)
                taken.append(candidate)
            i += 1
        return taken
